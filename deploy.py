#!/usr/bin/env python3
"""
Deploy the character contract onto the configured MongoDB state collection:
- Shows the deploying operator
- Seeds the contract state (operator, counters)
- Verifies by reading the public views back
- Optionally mints a test character (--mint NAME)
- Prints a deployment summary as JSON
"""

import argparse
import json
from datetime import datetime, timezone

from pymongo.errors import PyMongoError

import config
from con_characters import CharacterContract
from errors import CharacterError
from storage import MongoDriver

TEST_STATS = (50, 40, 30)  # strength, agility, intelligence


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Deploy the Dynamic NFT Gaming Characters contract")
    p.add_argument("--operator", default=config.OPERATOR, help="administrative identity (contract owner)")
    p.add_argument("--contract", default=config.CONTRACT_NAME, help="contract name / state key prefix")
    p.add_argument("--mint", metavar="NAME", default=None, help="mint a test character to the operator")
    return p.parse_args(argv)


def print_character(contract: CharacterContract, token_id: int):
    c = contract.get_character(token_id)
    print("🏆 Character Details:")
    print("   Name:", c.name)
    print("   Level:", c.level)
    print("   Strength:", c.strength)
    print("   Agility:", c.agility)
    print("   Intelligence:", c.intelligence)
    print("   Health:", c.health)
    print("   Mana:", c.mana)
    print("   Battle Power:", contract.battle_power(token_id))


def main(argv=None, driver=None) -> int:
    args = parse_args(argv)
    print("🚀 Starting deployment of Dynamic NFT Gaming Characters...")
    print("📝 Deploying contract with operator:", args.operator)

    try:
        if driver is None:
            driver = MongoDriver.connect(config.MONGO_URI, config.DB_NAME, config.COLL_STATE)
        contract = CharacterContract(
            args.operator,
            driver=driver,
            contract_name=args.contract,
            name=config.TOKEN_NAME,
            symbol=config.TOKEN_SYMBOL,
        )
    except (PyMongoError, CharacterError) as e:
        print("💥 Deployment failed:", e)
        return 1
    print("✅ Contract deployed as:", contract.contract_name)
    if contract.owner() != args.operator:
        print(f"⚠️  State already deployed: owner stays {contract.owner()} (requested {args.operator})")

    print("\n🔍 Verifying deployment...")
    print("📋 Contract Details:")
    print("   Name:", contract.name)
    print("   Symbol:", contract.symbol)
    print("   Owner:", contract.owner())
    print("   Total Supply:", contract.total_supply())
    print("   Level 2 requirement:", contract.level_requirement(2), "XP")
    print("   Level 5 requirement:", contract.level_requirement(5), "XP")

    minted = None
    if args.mint:
        print(f"\n🎨 Minting test character: {args.mint}...")
        try:
            minted = contract.mint(contract.owner(), contract.owner(), args.mint, *TEST_STATS)
            print("✅ Test character minted! Token id:", minted)
            print_character(contract, minted)
        except CharacterError as e:
            print("❌ Error minting test character:", e.message)

    info = {
        "contract": contract.contract_name,
        "operator": contract.owner(),
        "database": config.DB_NAME,
        "deployment_time": datetime.now(timezone.utc).isoformat(),
        "total_supply": contract.total_supply(),
        "test_token_id": minted,
    }
    print("\n💾 Deployment Info (save this):")
    print(json.dumps(info, indent=2))
    print("\n🎉 Deployment completed successfully!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
