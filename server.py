import logging

from flask import Flask, request, jsonify
from flask_cors import CORS

import config
import character_engine as engine
from con_characters import CharacterContract
from errors import (
    AuthorizationError,
    CharacterError,
    CooldownError,
    InactiveCharacterError,
    NotFoundError,
    SelfBattleError,
    ValidationError,
)
from storage import MongoDriver

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    SelfBattleError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    InactiveCharacterError: 409,
    CooldownError: 429,
}


def as_int(x, field):
    if isinstance(x, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        if isinstance(x, int): return x
        if isinstance(x, str) and x.strip() != "": return int(x)
    except ValueError:
        pass
    raise ValidationError(f"{field} must be an integer")


def caller_of(req) -> str:
    caller = (req.headers.get("X-Caller") or "").strip()
    if not caller:
        raise AuthorizationError("X-Caller header is required")
    return caller


def character_view(contract: CharacterContract, token_id: int) -> dict:
    character = contract.get_character(token_id)
    out = character.to_dict()
    out["token_id"] = token_id
    out["owner"] = contract.owner_of(token_id)
    out["battle_power"] = engine.battle_power(character)
    out["uri"] = contract.token_uri(token_id)
    return out


def create_app(contract: CharacterContract) -> Flask:
    app = Flask(__name__)
    CORS(app, resources={r"/api/*": {"origins": config.CORS_ORIGINS}})

    @app.errorhandler(CharacterError)
    def handle_character_error(e):
        status = ERROR_STATUS.get(type(e), 400)
        body = {"error": e.message}
        if isinstance(e, CooldownError):
            body["remaining"] = e.remaining
        logger.debug("%s %s -> %s: %s", request.method, request.path, status, e.message)
        return jsonify(body), status

    # ---------- contract ----------
    @app.get("/api/contract")
    def contract_details():
        return jsonify(contract.details())

    # ---------- characters ----------
    @app.get("/api/characters/<int:token_id>")
    def get_character(token_id):
        return jsonify(character_view(contract, token_id))

    @app.post("/api/characters")
    def mint_character():
        caller = caller_of(request)
        body = request.get_json(silent=True) or {}
        token_id = contract.mint(
            caller,
            to=str(body.get("to", "")).strip(),
            name=str(body.get("name", "")),
            strength=as_int(body.get("strength"), "strength"),
            agility=as_int(body.get("agility"), "agility"),
            intelligence=as_int(body.get("intelligence"), "intelligence"),
            uri=str(body.get("uri", "")),
        )
        return jsonify(character_view(contract, token_id)), 201

    @app.post("/api/characters/<int:token_id>/progress")
    def progress_character(token_id):
        caller = caller_of(request)
        body = request.get_json(silent=True) or {}
        contract.update_character(
            caller,
            token_id,
            experience_gained=as_int(body.get("experience", 0), "experience"),
            strength_bonus=as_int(body.get("strength", 0), "strength"),
            agility_bonus=as_int(body.get("agility", 0), "agility"),
            intelligence_bonus=as_int(body.get("intelligence", 0), "intelligence"),
        )
        return jsonify(character_view(contract, token_id))

    @app.post("/api/characters/<int:token_id>/toggle")
    def toggle_character(token_id):
        caller = caller_of(request)
        contract.toggle_active(caller, token_id)
        return jsonify(character_view(contract, token_id))

    @app.get("/api/characters/<int:token_id>/cooldown")
    def character_cooldown(token_id):
        return jsonify({
            "token_id": token_id,
            "can_battle": contract.can_battle(token_id),
            "remaining": contract.battle_cooldown(token_id),
        })

    # ---------- battles ----------
    @app.post("/api/battles")
    def battle():
        caller = caller_of(request)
        body = request.get_json(silent=True) or {}
        attacker_id = as_int(body.get("attacker_id"), "attacker_id")
        defender_id = as_int(body.get("defender_id"), "defender_id")

        result = contract.engage_battle(caller, attacker_id, defender_id)
        return jsonify({
            "attacker_id": attacker_id,
            "defender_id": defender_id,
            "winner_id": attacker_id if result.winner_is_attacker else defender_id,
            "attacker_power": result.attacker_power,
            "defender_power": result.defender_power,
            "random_factor": result.random_factor,
            "attacker_exp_gain": result.attacker_exp_gain,
            "defender_exp_gain": result.defender_exp_gain,
            "attacker": result.attacker.to_dict(),
            "defender": result.defender.to_dict(),
        })

    return app


if __name__ == "__main__":
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    driver = MongoDriver.connect(config.MONGO_URI, config.DB_NAME, config.COLL_STATE)
    contract = CharacterContract(
        config.OPERATOR,
        driver=driver,
        contract_name=config.CONTRACT_NAME,
        name=config.TOKEN_NAME,
        symbol=config.TOKEN_SYMBOL,
    )
    app = create_app(contract)
    print(f"🚀 Serving {config.CONTRACT_NAME} on {config.HOST}:{config.PORT}")
    app.run(host=config.HOST, port=config.PORT)
