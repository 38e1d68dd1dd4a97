# storage.py
# Contract state containers. Keys follow the ledger's state key format:
#   <contract>.<name>:<k1>:<k2>
# e.g. con_characters.characters:7

from typing import Any, Dict

from pymongo import ASCENDING, MongoClient, UpdateOne

# BSON integers are signed 64-bit
MAX_STORED_INT = 2**63 - 1


def state_key(contract: str, name: str, keys=()) -> str:
    if not isinstance(keys, tuple):
        keys = (keys,)
    base = f"{contract}.{name}"
    if not keys:
        return base
    return base + ":" + ":".join(str(k) for k in keys)


class MemoryDriver:
    def __init__(self):
        self.data: Dict[str, Any] = {}

    def get(self, key: str):
        return self.data.get(key)

    def set(self, key: str, value):
        self.data[key] = value

    def set_many(self, items: Dict[str, Any]):
        self.data.update(items)

    def delete(self, key: str):
        self.data.pop(key, None)


class MongoDriver:
    """
    One document per state key: {"key": "con_characters.owners:0", "value": "alice"}.
    """

    def __init__(self, collection):
        self.collection = collection
        self.collection.create_index([("key", ASCENDING)], unique=True)

    @classmethod
    def connect(cls, uri: str, db_name: str, collection_name: str) -> "MongoDriver":
        client = MongoClient(uri)
        return cls(client[db_name][collection_name])

    def get(self, key: str):
        doc = self.collection.find_one({"key": key}, {"value": 1})
        if doc is None:
            return None
        return doc.get("value")

    def set(self, key: str, value):
        self.collection.update_one({"key": key}, {"$set": {"key": key, "value": value}}, upsert=True)

    def set_many(self, items: Dict[str, Any]):
        # one ordered round-trip; not a multi-document transaction
        self.collection.bulk_write([
            UpdateOne({"key": key}, {"$set": {"key": key, "value": value}}, upsert=True)
            for key, value in items.items()
        ], ordered=True)

    def delete(self, key: str):
        self.collection.delete_one({"key": key})


class Variable:
    def __init__(self, driver, contract: str, name: str, default_value=None):
        self.driver = driver
        self.key = state_key(contract, name)
        self.default_value = default_value

    def get(self):
        value = self.driver.get(self.key)
        return self.default_value if value is None else value

    def set(self, value):
        self.driver.set(self.key, value)


class Hash:
    """
    Mapping view over the driver: h[key] / h[k1, k2]. Unset keys read as default_value.
    """

    def __init__(self, driver, contract: str, name: str, default_value=None):
        self.driver = driver
        self.contract = contract
        self.name = name
        self.default_value = default_value

    def __getitem__(self, keys):
        value = self.driver.get(state_key(self.contract, self.name, keys))
        return self.default_value if value is None else value

    def __setitem__(self, keys, value):
        self.driver.set(state_key(self.contract, self.name, keys), value)

    def __delitem__(self, keys):
        self.driver.delete(state_key(self.contract, self.name, keys))

    def set_many(self, items: dict):
        self.driver.set_many({state_key(self.contract, self.name, k): v for k, v in items.items()})
