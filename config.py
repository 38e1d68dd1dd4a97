# config.py
# Use env vars to switch database / operator without touching code.
import os

MONGO_URI      = os.getenv("MONGO_URI",      "mongodb://localhost:27017/")
DB_NAME        = os.getenv("DB_NAME",        "nft_characters")
COLL_STATE     = os.getenv("COLL_STATE",     "state")

CONTRACT_NAME  = os.getenv("CONTRACT_NAME",  "con_characters")
TOKEN_NAME     = os.getenv("TOKEN_NAME",     "Dynamic NFT Gaming Characters")
TOKEN_SYMBOL   = os.getenv("TOKEN_SYMBOL",   "DNFTC")
OPERATOR       = os.getenv("OPERATOR",       "operator")

HOST           = os.getenv("HOST",           "0.0.0.0")
PORT           = int(os.getenv("PORT",       "5000"))
# comma separated; "*" allows any origin (no cookies are used)
CORS_ORIGINS   = [o.strip() for o in os.getenv(
    "CORS_ORIGINS", "http://127.0.0.1:5000,http://localhost:5000"
).split(",") if o.strip()]

LOG_LEVEL      = os.getenv("LOG_LEVEL",      "INFO")
