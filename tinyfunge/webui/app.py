from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Response, status
from pydantic import BaseModel, Field

from tinyfunge.errors import FungeError, StepLimitExceeded
from tinyfunge.grid import Grid
from tinyfunge.interpreter import ExecutionState, FungeInterpreter
from tinyfunge.stack import Character

from .session import SessionRecord, SessionStore

logger = logging.getLogger(__name__)


def _state_to_dict(state: ExecutionState) -> dict:
    row, col = state.position
    return {
        "step": state.step,
        "row": row,
        "col": col,
        "direction": state.direction.value,
        "mode": state.mode.value,
        "operator": type(state.operator).__name__ if state.operator is not None else None,
        "stack": [
            {
                "kind": "character" if isinstance(value, Character) else "number",
                "value": value.as_int(),
            }
            for value in state.stack
        ],
        "output": state.output,
        "terminated": state.terminated,
    }


def _calculate_total_steps(code: str, cap: int = 10000) -> Tuple[int, bool]:
    interpreter = FungeInterpreter()
    total = 0
    try:
        for state in interpreter.step(Grid.from_text(code), max_steps=cap):
            total = state.step
    except StepLimitExceeded:
        return cap, True
    except FungeError as exc:
        logger.info("Program stops with an error after %d steps: %s", total, exc)
    return total, False


class SessionConfiguration(BaseModel):
    code: str = ""
    max_steps: Optional[int] = Field(default=None, ge=1)
    history_limit: int = Field(default=200, ge=1)


class StackEntry(BaseModel):
    kind: str
    value: int


class SessionState(BaseModel):
    step: int
    row: int
    col: int
    direction: str
    mode: str
    operator: Optional[str]
    stack: List[StackEntry]
    output: str
    terminated: bool


class Breakpoint(BaseModel):
    row: int = Field(ge=0)
    col: int = Field(ge=0)


class SessionPayload(BaseModel):
    session_id: str
    code: str
    state: SessionState
    history: List[SessionState]
    finished: bool
    error: Optional[str]
    history_size: int
    breakpoints: List[Breakpoint]
    hit_breakpoint: Optional[Breakpoint]
    total_steps: int
    total_steps_capped: bool


class StepRequest(BaseModel):
    count: int = Field(default=1, ge=1)


class StepResponse(SessionPayload):
    states: List[SessionState]


class RunRequest(BaseModel):
    limit: Optional[int] = Field(default=None, ge=1)
    ignore_breakpoints: bool = False


def _breakpoint(position: Optional[Tuple[int, int]]) -> Optional[Breakpoint]:
    if position is None:
        return None
    row, col = position
    return Breakpoint(row=row, col=col)


def create_app(store: Optional[SessionStore] = None) -> FastAPI:
    session_store = store or SessionStore()
    app = FastAPI(title="TinyFunge WebUI API", version="0.1.0")

    def _lookup(session_id: str) -> SessionRecord:
        try:
            return session_store.get(session_id)
        except KeyError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc

    def _serialize_states(states: List[ExecutionState]) -> List[SessionState]:
        return [SessionState(**_state_to_dict(state)) for state in states]

    def _payload_fields(record: SessionRecord) -> dict:
        session = record.session
        return dict(
            session_id=record.session_id,
            code=session.code,
            state=SessionState(**_state_to_dict(session.current_state())),
            history=_serialize_states(session.history),
            finished=session.is_finished(),
            error=session.error,
            history_size=len(session.history),
            breakpoints=[_breakpoint(point) for point in session.list_breakpoints()],
            hit_breakpoint=_breakpoint(session.hit_breakpoint),
            total_steps=record.total_steps,
            total_steps_capped=record.total_steps_capped,
        )

    def _advance(action) -> List[ExecutionState]:
        try:
            return list(action())
        except StepLimitExceeded as exc:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        except FungeError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc

    @app.post("/api/session", response_model=SessionPayload, status_code=status.HTTP_201_CREATED)
    def create_session(payload: SessionConfiguration) -> SessionPayload:
        total_steps, total_steps_capped = _calculate_total_steps(payload.code)
        record = session_store.create_session(
            code=payload.code,
            max_steps=payload.max_steps,
            history_limit=payload.history_limit,
            total_steps=total_steps,
            total_steps_capped=total_steps_capped,
        )
        return SessionPayload(**_payload_fields(record))

    @app.get("/api/session/{session_id}", response_model=SessionPayload)
    def get_session(session_id: str) -> SessionPayload:
        return SessionPayload(**_payload_fields(_lookup(session_id)))

    @app.post("/api/session/{session_id}/reset", response_model=SessionPayload)
    def reset_session(session_id: str) -> SessionPayload:
        _lookup(session_id)
        record = session_store.reset(session_id)
        return SessionPayload(**_payload_fields(record))

    @app.post("/api/session/{session_id}/step", response_model=StepResponse)
    def step_session(session_id: str, payload: StepRequest) -> StepResponse:
        record = _lookup(session_id)
        session = record.session
        states = _advance(lambda: session.step_forward(payload.count))
        return StepResponse(states=_serialize_states(states), **_payload_fields(record))

    @app.post("/api/session/{session_id}/run", response_model=StepResponse)
    def run_session(session_id: str, payload: RunRequest) -> StepResponse:
        record = _lookup(session_id)
        session = record.session
        original_breakpoints: Optional[set] = None
        if payload.ignore_breakpoints:
            original_breakpoints = set(session.breakpoints)
            session.clear_breakpoints()
            session.hit_breakpoint = None

        try:
            states = _advance(lambda: session.run_until_break(payload.limit))
        finally:
            if original_breakpoints is not None:
                session.breakpoints = set(original_breakpoints)
                session.hit_breakpoint = None

        return StepResponse(states=_serialize_states(states), **_payload_fields(record))

    @app.post("/api/session/{session_id}/breakpoints", response_model=SessionPayload)
    def add_breakpoint(session_id: str, payload: Breakpoint) -> SessionPayload:
        record = _lookup(session_id)
        record.session.add_breakpoint(payload.row, payload.col)
        return SessionPayload(**_payload_fields(record))

    @app.delete("/api/session/{session_id}/breakpoints/{row}/{col}", response_model=SessionPayload)
    def remove_breakpoint(session_id: str, row: int, col: int) -> SessionPayload:
        record = _lookup(session_id)
        if not record.session.remove_breakpoint(row, col):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Breakpoint not found at row={row} col={col}",
            )
        return SessionPayload(**_payload_fields(record))

    @app.delete("/api/session/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_session(session_id: str) -> Response:
        removed = session_store.remove(session_id)
        if not removed:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown session id: {session_id}",
            )
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


__all__ = ["create_app"]
