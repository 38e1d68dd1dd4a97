import pytest

from con_characters import CharacterContract
from storage import MemoryDriver

OPERATOR = "operator"
ALICE = "alice"
BOB = "bob"


class FakeClock:
    def __init__(self, t=1_000_000):
        self.t = t

    def __call__(self):
        return self.t

    def advance(self, seconds):
        self.t += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def driver():
    return MemoryDriver()


@pytest.fixture
def contract(driver, clock):
    return CharacterContract(OPERATOR, driver=driver, clock=clock, entropy=lambda: b"fixed-seed")


@pytest.fixture
def warriors(contract, clock):
    """Alice holds a strong character (0), Bob a fresh weak one (1); cooldown already elapsed."""
    strong = contract.mint(OPERATOR, ALICE, "Test Warrior", 50, 40, 30)
    weak = contract.mint(OPERATOR, BOB, "Squire", 10, 10, 10)
    clock.advance(3600)
    return strong, weak
