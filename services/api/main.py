import json
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import redis
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from civrise.infra.redis_streams import RedisStreams
from civrise.models import REDIS_SETTINGS
from civrise.models.enums import ActionKind


@dataclass(frozen=True)
class ApiConfig:
    redis_url: str | None
    cors_allow_origins: str
    restart_key: str
    action_maxlen: int
    port: int


def _load_config() -> ApiConfig:
    return ApiConfig(
        redis_url=os.environ.get("REDIS_URL"),
        cors_allow_origins=os.environ.get("CORS_ALLOW_ORIGINS", "*"),
        restart_key=REDIS_SETTINGS.restart_key,
        action_maxlen=int(os.environ.get("ACTION_STREAM_MAXLEN", "5000")),
        port=int(os.environ.get("PORT", "8000")),
    )


_CONFIG = _load_config()

# Redis streams helper (async). Stream/key names come from REDIS_SETTINGS.
streams = RedisStreams(url=_CONFIG.redis_url)

app = FastAPI(title="Civrise API", version="0.1.0")

cors_origins = _CONFIG.cors_allow_origins
origins = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Actions that name a building, technology or rival
TARGETED_ACTIONS = {
    ActionKind.CONSTRUCT,
    ActionKind.ASSIGN_WORKERS,
    ActionKind.RESEARCH,
    ActionKind.ATTACK,
    ActionKind.TRADE,
    ActionKind.GIFT,
}


class ActionIn(BaseModel):
    """A single player action, applied by the worker between ticks."""

    action: ActionKind = Field(..., description="Action kind, e.g. 'construct'")
    target: str | None = Field(None, description="Building, technology or rival id")
    amount: int | None = Field(None, description="Worker delta or recruit count")


class ActionsPayload(BaseModel):
    actions: List[ActionIn] = Field(..., min_length=1)


def _check_action(action: ActionIn) -> None:
    if action.action in TARGETED_ACTIONS and not action.target:
        raise HTTPException(status_code=422, detail=f"{action.action.value} needs a target")
    if action.action == ActionKind.ASSIGN_WORKERS and not action.amount:
        raise HTTPException(status_code=422, detail="assign_workers needs a non-zero amount")


@app.get("/health")
async def health() -> Dict[str, str]:
    try:
        await streams.client.ping()
    except redis.exceptions.RedisError as exc:  # type: ignore[attr-defined]
        print(f"[civ-api] redis health check failed: {exc}")
        raise HTTPException(status_code=503, detail=f"redis error: {exc}") from exc
    return {"status": "ok"}


@app.get("/snapshot")
async def snapshot() -> Dict[str, Any]:
    """
    Return the latest game snapshot saved by the simulation worker.
    """
    try:
        snap = await streams.load_snapshot()
    except redis.exceptions.RedisError as exc:  # type: ignore[attr-defined]
        print(f"[civ-api] could not load snapshot: {exc}")
        raise HTTPException(status_code=503, detail=f"redis error: {exc}") from exc
    except json.JSONDecodeError as exc:
        print(f"[civ-api] stored snapshot is corrupt: {exc}")
        raise HTTPException(status_code=500, detail="stored snapshot is corrupt") from exc
    if not snap:
        raise HTTPException(status_code=404, detail="no snapshot yet")
    return snap


@app.get("/events")
async def events(after: str = "0-0", count: int = 100) -> List[Dict[str, Any]]:
    """
    Stream events after a given stream id. Events are published as JSON under the
    'data' field by the simulation worker.
    """
    try:
        entries = await streams.read_events(last_id=after, count=count, block_ms=None)
    except redis.exceptions.RedisError as exc:  # type: ignore[attr-defined]
        print(f"[civ-api] could not read events: {exc}")
        raise HTTPException(status_code=503, detail=f"redis error: {exc}") from exc
    out: List[Dict[str, Any]] = []
    for entry_id, payload in entries:
        item = dict(payload)
        item["id"] = entry_id
        out.append(item)
    return out


@app.post("/actions")
async def post_actions(payload: ActionsPayload) -> Dict[str, List[str]]:
    """
    Append one or more actions to the Redis action stream.
    The simulation worker consumes them between ticks.
    """
    for action in payload.actions:
        _check_action(action)
    ids: List[str] = []
    try:
        for action in payload.actions:
            raw = {**action.model_dump(mode="json", exclude_none=True), "source": "api"}
            ids.append(await streams.append_action(raw, maxlen=_CONFIG.action_maxlen))
    except redis.exceptions.RedisError as exc:  # type: ignore[attr-defined]
        print(f"[civ-api] could not queue actions: {exc}")
        raise HTTPException(status_code=503, detail=f"redis error: {exc}") from exc
    return {"ids": ids}


@app.post("/admin/restart")
async def restart_game(seed: Optional[str] = None) -> Dict[str, str]:
    """
    Ask the worker to throw away the current game and start a new one.
    """
    try:
        await streams.client.set(_CONFIG.restart_key, json.dumps({"seed": seed}), ex=30)
    except redis.exceptions.RedisError as exc:  # type: ignore[attr-defined]
        print(f"[civ-api] could not queue restart: {exc}")
        raise HTTPException(status_code=503, detail=f"redis error: {exc}") from exc
    return {"status": "queued"}


if __name__ == "__main__":
    uvicorn.run(
        "services.api.main:app", host="0.0.0.0", port=_CONFIG.port, reload=False
    )
