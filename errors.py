# errors.py
# Failures raised by the engine and the character contract.


class CharacterError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CharacterError):
    pass


class NotFoundError(CharacterError):
    pass


class AuthorizationError(CharacterError):
    pass


class InactiveCharacterError(CharacterError):
    pass


class CooldownError(CharacterError):
    """Battle attempted before the attacker's cooldown elapsed."""

    def __init__(self, remaining: int):
        super().__init__(f"Character is on cooldown for {remaining} more seconds")
        self.remaining = remaining


class SelfBattleError(CharacterError):
    pass
