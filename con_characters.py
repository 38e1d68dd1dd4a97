# con_characters.py
# Character NFTs: one token per character, progression stored per token id.
# Caller identity, clock and entropy are supplied explicitly so every call is
# a single deterministic state transition.

import logging
import os
import threading
import time

import character_engine as engine
from character_engine import Character
from errors import (
    AuthorizationError,
    CharacterError,
    InactiveCharacterError,
    NotFoundError,
    SelfBattleError,
    ValidationError,
)
from storage import MAX_STORED_INT, Hash, MemoryDriver, Variable

logger = logging.getLogger(__name__)


class LogEvent:
    def __init__(self, event: str, params: dict):
        self.event = event
        self.params = params

    def __call__(self, data: dict) -> dict:
        for key, spec in self.params.items():
            if key not in data:
                raise ValueError(f"{self.event}: missing param {key}")
            if not isinstance(data[key], spec["type"]):
                raise TypeError(f"{self.event}: {key} must be {spec['type'].__name__}")
        return {"event": self.event, "data": dict(data)}


CharacterMintedEvent = LogEvent(
    event='CharacterMinted',
    params={'to': {'type': str, 'idx': True}, 'token_id': {'type': int}, 'name': {'type': str}}
)

LevelUpEvent = LogEvent(
    event='LevelUp',
    params={'token_id': {'type': int, 'idx': True}, 'new_level': {'type': int}}
)

StatsUpdatedEvent = LogEvent(
    event='StatsUpdated',
    params={'token_id': {'type': int, 'idx': True}, 'strength': {'type': int},
            'agility': {'type': int}, 'intelligence': {'type': int}}
)

BattleCompletedEvent = LogEvent(
    event='BattleCompleted',
    params={'token_id': {'type': int, 'idx': True}, 'opponent_id': {'type': int},
            'won': {'type': bool}, 'experience_gained': {'type': int}}
)

StatusChangedEvent = LogEvent(
    event='StatusChanged',
    params={'token_id': {'type': int, 'idx': True}, 'active': {'type': bool}}
)

TransferEvent = LogEvent(
    event='Transfer',
    params={'from': {'type': str, 'idx': True}, 'to': {'type': str, 'idx': True}, 'token_id': {'type': int}}
)

BurnEvent = LogEvent(
    event='Burn',
    params={'owner': {'type': str, 'idx': True}, 'token_id': {'type': int}}
)


class CharacterContract:
    def __init__(self, operator: str, driver=None, contract_name: str = "con_characters",
                 name: str = "Dynamic NFT Gaming Characters", symbol: str = "DNFTC",
                 clock=time.time, entropy=None):
        if not operator:
            raise ValidationError("operator is required")
        self.contract_name = contract_name
        self.name = name
        self.symbol = symbol
        self.clock = clock
        self.entropy = entropy or (lambda: os.urandom(32))
        self.events = []
        # one state transition at a time; the server handles requests on several threads
        self._lock = threading.RLock()

        driver = driver if driver is not None else MemoryDriver()
        self.characters = Hash(driver, contract_name, "characters")      # characters[token_id] = dict
        self.owners = Hash(driver, contract_name, "owners")              # owners[token_id] = address
        self.balances = Hash(driver, contract_name, "balances", 0)       # balances[address] = count
        self.metadata = Hash(driver, contract_name, "metadata")          # metadata[token_id] = uri
        self.token_counter = Variable(driver, contract_name, "token_counter", 0)
        self.supply = Variable(driver, contract_name, "total_supply", 0)
        self.operator = Variable(driver, contract_name, "operator")

        # re-deploying over existing state keeps the original operator
        if self.operator.get() is None:
            self.operator.set(operator)
            self.token_counter.set(0)
            self.supply.set(0)

    # -------- state-changing --------

    def mint(self, caller: str, to: str, name: str, strength: int, agility: int, intelligence: int,
             uri: str = "") -> int:
        """
        Mint a new character for `to`. Operator only.
        """
        with self._lock:
            self.require_operator(caller)
            check_address(to, "Recipient")
            if not isinstance(uri, str):
                raise ValidationError("uri must be a string")
            character = engine.create(name, strength, agility, intelligence, self.now())

            token_id = self.token_counter.get()
            event = CharacterMintedEvent({'to': to, 'token_id': token_id, 'name': name})

            self.token_counter.set(token_id + 1)
            self.store(token_id, character)
            self.owners[token_id] = to
            self.balances[to] = self.balances[to] + 1
            self.supply.set(self.supply.get() + 1)
            if uri:
                self.metadata[token_id] = uri

            self.emit(event)
            return token_id

    def update_character(self, caller: str, token_id: int, experience_gained: int,
                         strength_bonus: int = 0, agility_bonus: int = 0, intelligence_bonus: int = 0) -> Character:
        """
        Add experience and stat bonuses. Holder or operator; character must be active.
        Level-up bonuses are applied before the stat bonuses.
        """
        with self._lock:
            character = self.get_character(token_id)
            self.require_holder_or_operator(caller, token_id)
            if not character.active:
                raise InactiveCharacterError(f"Character {token_id} is not active")

            updated, level_up = engine.apply_progress(
                character, experience_gained, strength_bonus, agility_bonus, intelligence_bonus, self.now()
            )
            check_storable(updated)

            events = []
            if level_up is not None:
                events.append(LevelUpEvent({'token_id': token_id, 'new_level': level_up}))
            events.append(StatsUpdatedEvent({
                'token_id': token_id,
                'strength': updated.strength,
                'agility': updated.agility,
                'intelligence': updated.intelligence,
            }))

            self.store(token_id, updated)
            for event in events:
                self.emit(event)
            return updated

    def engage_battle(self, caller: str, attacker_id: int, defender_id: int) -> engine.BattleResult:
        """
        Battle defender with attacker. Caller must hold the attacker.
        Both records are written together, only after every check passed.
        """
        with self._lock:
            check_token_id(attacker_id)
            check_token_id(defender_id)
            if attacker_id == defender_id:
                raise SelfBattleError("Character cannot battle itself")
            attacker = self.get_character(attacker_id)
            defender = self.get_character(defender_id)
            if self.owners[attacker_id] != caller:
                raise AuthorizationError("Only the holder can battle with this character")

            now = self.now()
            try:
                result = engine.battle(attacker, defender, self.entropy(), now, caller)
            except CharacterError as e:
                logger.debug("battle %s vs %s rejected: %s", attacker_id, defender_id, e)
                raise
            check_storable(result.attacker)
            check_storable(result.defender)

            events = [
                BattleCompletedEvent({
                    'token_id': attacker_id,
                    'opponent_id': defender_id,
                    'won': result.winner_is_attacker,
                    'experience_gained': result.attacker_exp_gain,
                }),
                BattleCompletedEvent({
                    'token_id': defender_id,
                    'opponent_id': attacker_id,
                    'won': not result.winner_is_attacker,
                    'experience_gained': result.defender_exp_gain,
                }),
            ]
            if result.attacker_level_up is not None:
                events.append(LevelUpEvent({'token_id': attacker_id, 'new_level': result.attacker_level_up}))
            if result.defender_level_up is not None:
                events.append(LevelUpEvent({'token_id': defender_id, 'new_level': result.defender_level_up}))

            self.characters.set_many({
                attacker_id: result.attacker.to_dict(),
                defender_id: result.defender.to_dict(),
            })
            for event in events:
                self.emit(event)
            return result

    def toggle_active(self, caller: str, token_id: int) -> Character:
        with self._lock:
            character = self.get_character(token_id)
            self.require_holder_or_operator(caller, token_id)
            updated = engine.toggle_active(character)
            event = StatusChangedEvent({'token_id': token_id, 'active': updated.active})
            self.store(token_id, updated)
            self.emit(event)
            return updated

    def transfer(self, caller: str, to: str, token_id: int):
        with self._lock:
            self.get_character(token_id)
            holder = self.owners[token_id]
            if holder != caller:
                raise AuthorizationError("Only the holder can transfer this character")
            check_address(to, "Recipient")
            event = TransferEvent({'from': holder, 'to': to, 'token_id': token_id})

            self.owners[token_id] = to
            self.balances[holder] = self.balances[holder] - 1
            self.balances[to] = self.balances[to] + 1
            self.emit(event)

    def burn(self, caller: str, token_id: int):
        """
        Delete the character and revoke its token.
        """
        with self._lock:
            self.get_character(token_id)
            self.require_holder_or_operator(caller, token_id)
            holder = self.owners[token_id]
            event = BurnEvent({'owner': holder, 'token_id': token_id})

            del self.characters[token_id]
            del self.owners[token_id]
            del self.metadata[token_id]
            self.balances[holder] = self.balances[holder] - 1
            self.supply.set(self.supply.get() - 1)
            self.emit(event)

    # -------- views --------

    def get_character(self, token_id: int) -> Character:
        check_token_id(token_id)
        data = self.characters[token_id]
        if data is None:
            raise NotFoundError(f"Character {token_id} does not exist")
        return Character.from_dict(data)

    def owner_of(self, token_id: int) -> str:
        self.get_character(token_id)
        return self.owners[token_id]

    def owner(self) -> str:
        return self.operator.get()

    def balance_of(self, address: str) -> int:
        return self.balances[address]

    def token_uri(self, token_id: int) -> str:
        self.get_character(token_id)
        return self.metadata[token_id] or ""

    def total_supply(self) -> int:
        return self.supply.get()

    def battle_power(self, token_id: int) -> int:
        return engine.battle_power(self.get_character(token_id))

    def can_battle(self, token_id: int) -> bool:
        return engine.can_battle(self.get_character(token_id), self.now())

    def battle_cooldown(self, token_id: int) -> int:
        return engine.cooldown_remaining(self.get_character(token_id), self.now())

    def level_requirement(self, level: int) -> int:
        return engine.LEVEL_REQUIREMENTS.get(level, 0)

    def details(self) -> dict:
        return {
            "contract": self.contract_name,
            "name": self.name,
            "symbol": self.symbol,
            "owner": self.owner(),
            "total_supply": self.total_supply(),
            "level_requirements": {str(k): v for k, v in engine.LEVEL_REQUIREMENTS.items()},
        }

    # -------- helpers --------

    def now(self) -> int:
        return int(self.clock())

    def store(self, token_id: int, character: Character):
        self.characters[token_id] = character.to_dict()

    def emit(self, event: dict):
        self.events.append(event)
        logger.info("%s %s", event["event"], event["data"])

    def require_operator(self, caller: str):
        if caller != self.operator.get():
            raise AuthorizationError("Only the contract owner can do this")

    def require_holder_or_operator(self, caller: str, token_id: int):
        if caller != self.owners[token_id] and caller != self.operator.get():
            raise AuthorizationError("Not the holder or contract owner")


# -------- argument checks --------

def check_token_id(token_id):
    if not isinstance(token_id, int) or isinstance(token_id, bool) or token_id < 0:
        raise ValidationError("token_id must be a non-negative integer")


def check_address(address, label: str = "Address"):
    if not isinstance(address, str) or address.strip() == "":
        raise ValidationError(f"{label} is required")


def check_storable(character: Character):
    for field, value in character.to_dict().items():
        if isinstance(value, int) and value > MAX_STORED_INT:
            raise ValidationError(f"{field} exceeds the storable maximum of {MAX_STORED_INT}")
