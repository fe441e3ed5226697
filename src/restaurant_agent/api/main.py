"""FastAPI entrypoint for chat, rate-limit and trace endpoints."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from restaurant_agent.agent.dispatcher import RestaurantAgent
from restaurant_agent.agent.sessions import SessionAgents
from restaurant_agent.config import AgentConfig, LLMConfig
from restaurant_agent.data.store import RestaurantStore, SqliteRestaurantStore, demo_store
from restaurant_agent.obs.tracing import TraceStore

logger = logging.getLogger(__name__)


def _create_llm(model: str, *, temperature: float, max_tokens: int) -> Any:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        return None

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(model=model, temperature=temperature, max_tokens=max_tokens)


def _create_store() -> RestaurantStore:
    db_path = os.getenv("RESTAURANT_DB_PATH")
    if db_path:
        return SqliteRestaurantStore(db_path)
    logger.info("RESTAURANT_DB_PATH not set; serving the demo menu")
    return demo_store()


class ChatRequest(BaseModel):
    message: str
    session_id: str = Field(default="default", min_length=1, max_length=128)


_llm_config = LLMConfig(
    classifier_model=os.getenv("OPENAI_CLASSIFIER_MODEL", LLMConfig().classifier_model),
    generator_model=os.getenv("OPENAI_MODEL", LLMConfig().generator_model),
)
_config = AgentConfig(llm=_llm_config)
_store = _create_store()
_trace_store = TraceStore()
_classifier_llm = _create_llm(
    _llm_config.classifier_model,
    temperature=_llm_config.classifier_temperature,
    max_tokens=_llm_config.classifier_max_tokens,
)
_generator_llm = _create_llm(
    _llm_config.generator_model,
    temperature=_llm_config.generator_temperature,
    max_tokens=_llm_config.generator_max_tokens,
)


def _new_agent() -> RestaurantAgent:
    return RestaurantAgent.from_store(
        _store,
        classifier_llm=_classifier_llm,
        generator_llm=_generator_llm,
        config=_config,
        trace_store=_trace_store,
    )


_agents = SessionAgents(_new_agent, max_sessions=int(os.getenv("MAX_CHAT_SESSIONS", "256")))

app = FastAPI(title="Restaurant Query Agent", version="0.1.0")


@app.get("/health")
def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "llm_configured": _generator_llm is not None,
        "mode": "llm" if _generator_llm is not None else "deterministic",
        "active_sessions": len(_agents),
    }


@app.post("/chat")
async def chat(request: ChatRequest) -> dict[str, Any]:
    agent = _agents.acquire(request.session_id)
    response = await agent.process_message(request.message)
    return response.as_dict()


@app.get("/sessions/{session_id}/rate-limit")
def rate_limit(session_id: str) -> dict[str, Any]:
    agent = _agents.get(session_id)
    if agent is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return agent.rate_limit_status()


@app.get("/traces")
def traces(limit: int = 20) -> dict[str, Any]:
    records = [asdict(record) for record in _trace_store.list_recent(limit=limit)]
    return {"items": records}


@app.get("/traces/{trace_id}")
def trace_detail(trace_id: str) -> dict[str, Any]:
    try:
        record = _trace_store.get(trace_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return asdict(record)


@app.get("/metrics")
def metrics() -> dict[str, Any]:
    return _trace_store.summary()
