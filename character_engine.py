# character_engine.py
# Character progression: creation, levels, stat growth and battles.
# Pure functions over Character records; callers own persistence and events.

import hashlib
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional, Tuple

from errors import CooldownError, InactiveCharacterError, ValidationError

MIN_STAT = 10
MAX_STAT = 100
BASE_HEALTH = 100
BASE_MANA = 50
BATTLE_COOLDOWN = 3600
RANDOM_RANGE = 20

# Minimum cumulative experience per level. Only these levels are ever assigned,
# so a character can jump e.g. from 5 straight to 10.
LEVEL_REQUIREMENTS = {
    1: 0,
    2: 100,
    3: 250,
    4: 500,
    5: 1000,
    10: 2500,
    20: 10000,
    50: 100000,
}


@dataclass(frozen=True)
class Character:
    name: str
    level: int
    experience: int
    strength: int
    agility: int
    intelligence: int
    health: int
    mana: int
    last_action_time: int
    active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Character":
        return cls(
            name=str(data["name"]),
            level=int(data["level"]),
            experience=int(data["experience"]),
            strength=int(data["strength"]),
            agility=int(data["agility"]),
            intelligence=int(data["intelligence"]),
            health=int(data["health"]),
            mana=int(data["mana"]),
            last_action_time=int(data["last_action_time"]),
            active=bool(data.get("active", True)),
        )


@dataclass(frozen=True)
class BattleResult:
    """
    Outcome of one battle. Holds both updated records plus everything
    needed to emit BattleCompleted / LevelUp notifications.
    """
    winner_is_attacker: bool
    attacker_exp_gain: int
    defender_exp_gain: int
    attacker: Character
    defender: Character
    attacker_power: int
    defender_power: int
    random_factor: int
    attacker_level_up: Optional[int] = None
    defender_level_up: Optional[int] = None


def create(name: str, strength: int, agility: int, intelligence: int, creation_time: int) -> Character:
    if not isinstance(name, str) or name.strip() == "":
        raise ValidationError("Name cannot be empty")
    for label, value in (("strength", strength), ("agility", agility), ("intelligence", intelligence)):
        if not isinstance(value, int) or isinstance(value, bool) or value < MIN_STAT or value > MAX_STAT:
            raise ValidationError(f"{label} must be between {MIN_STAT} and {MAX_STAT}")

    return Character(
        name=name,
        level=1,
        experience=0,
        strength=strength,
        agility=agility,
        intelligence=intelligence,
        health=BASE_HEALTH + 2 * strength,
        mana=BASE_MANA + 2 * intelligence,
        last_action_time=int(creation_time),
        active=True,
    )


def level_for(experience: int) -> int:
    for level in sorted(LEVEL_REQUIREMENTS, reverse=True):
        if experience >= LEVEL_REQUIREMENTS[level]:
            return level
    return 1


def apply_level_up_bonuses(character: Character, new_level: int) -> Character:
    stat_bonus = 2 + new_level // 5
    return replace(
        character,
        level=new_level,
        strength=character.strength + stat_bonus,
        agility=character.agility + stat_bonus,
        intelligence=character.intelligence + stat_bonus,
        health=character.health + 10 + 2 * new_level,
        mana=character.mana + 5 + 2 * new_level,
    )


def check_level_up(character: Character) -> Tuple[Character, Optional[int]]:
    """
    Returns (character, new_level) when the experience qualifies for a higher
    level, else (character, None). Bonuses are applied once, for the final level.
    """
    new_level = level_for(character.experience)
    if new_level > character.level:
        return apply_level_up_bonuses(character, new_level), new_level
    return character, None


def apply_progress(
    character: Character,
    experience_gained: int,
    strength_bonus: int,
    agility_bonus: int,
    intelligence_bonus: int,
    action_time: int,
) -> Tuple[Character, Optional[int]]:
    for label, value in (
        ("experience", experience_gained),
        ("strength bonus", strength_bonus),
        ("agility bonus", agility_bonus),
        ("intelligence bonus", intelligence_bonus),
    ):
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValidationError(f"{label} must be a non-negative integer")

    updated = replace(character, experience=character.experience + experience_gained)
    updated, level_up = check_level_up(updated)
    updated = replace(
        updated,
        strength=updated.strength + strength_bonus,
        agility=updated.agility + agility_bonus,
        intelligence=updated.intelligence + intelligence_bonus,
        last_action_time=int(action_time),
    )
    return updated, level_up


def battle_power(character: Character) -> int:
    return 2 * character.strength + character.agility + character.intelligence // 2 + 10 * character.level


def cooldown_remaining(character: Character, now: int) -> int:
    ready_at = character.last_action_time + BATTLE_COOLDOWN
    return max(0, ready_at - int(now))


def can_battle(character: Character, now: int) -> bool:
    return character.active and cooldown_remaining(character, now) == 0


def ensure_cooldown_elapsed(character: Character, now: int):
    remaining = cooldown_remaining(character, now)
    if remaining > 0:
        raise CooldownError(remaining)


def random_factor(now: int, seed, caller: str = "") -> int:
    # coarse fairness perturbation, not a secure random source
    if seed is None:
        seed = b""
    elif not isinstance(seed, (bytes, bytearray)):
        seed = str(seed).encode()
    h = hashlib.sha256()
    h.update(str(int(now)).encode())
    h.update(bytes(seed))
    h.update(str(caller).encode())
    return int.from_bytes(h.digest(), "big") % RANDOM_RANGE


def battle(attacker: Character, defender: Character, seed, now: int, caller: str = "") -> BattleResult:
    if not attacker.active or not defender.active:
        raise InactiveCharacterError("Both characters must be active to battle")
    ensure_cooldown_elapsed(attacker, now)

    attacker_power = battle_power(attacker)
    defender_power = battle_power(defender)
    bonus = random_factor(now, seed, caller)
    attacker_wins = attacker_power + bonus > defender_power

    if attacker_wins:
        attacker_gain = 50 + 10 * defender.level
        defender_gain = 10
    else:
        attacker_gain = 20 + 5 * defender.level
        defender_gain = 30 + 8 * attacker.level

    updated_attacker = replace(attacker, experience=attacker.experience + attacker_gain, last_action_time=int(now))
    updated_defender = replace(defender, experience=defender.experience + defender_gain, last_action_time=int(now))
    updated_attacker, attacker_level_up = check_level_up(updated_attacker)
    updated_defender, defender_level_up = check_level_up(updated_defender)

    return BattleResult(
        winner_is_attacker=attacker_wins,
        attacker_exp_gain=attacker_gain,
        defender_exp_gain=defender_gain,
        attacker=updated_attacker,
        defender=updated_defender,
        attacker_power=attacker_power,
        defender_power=defender_power,
        random_factor=bonus,
        attacker_level_up=attacker_level_up,
        defender_level_up=defender_level_up,
    )


def toggle_active(character: Character) -> Character:
    return replace(character, active=not character.active)
