"""FastAPI application factory."""

import dataclasses
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from nutri_coach.api.models import ChatRequest, ProfileUpdate
from nutri_coach.app_logging import configure_logging
from nutri_coach.containers import AppContainer
from nutri_coach.domain.profile import UserProfile
from nutri_coach.services.session import (
    EmptyMessageError,
    SessionBusyError,
    SessionState,
    TurnResult,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def session(request: Request) -> dict[str, object]:
        """Return the full session state."""
        state_container: AppContainer = request.app.state.container
        return _session_view(state_container.session_controller.state)

    @app.put("/profile")
    async def profile(update: ProfileUpdate, request: Request) -> dict[str, object]:
        """Apply a partial profile update."""
        state_container: AppContainer = request.app.state.container
        updated = state_container.session_controller.update_profile(**update.changes())
        return _profile_view(updated)

    @app.post("/chat")
    async def chat(payload: ChatRequest, request: Request) -> dict[str, object]:
        """Run one coaching turn."""
        state_container: AppContainer = request.app.state.container
        try:
            result = await state_container.session_controller.send_message(
                payload.text, payload.image_base64
            )
        except SessionBusyError as exc:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT, detail=str(exc)
            ) from exc
        except EmptyMessageError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        if result.fallback_reason:
            logger.warning(
                "Turn answered with fallback reply",
                extra={"failure_kind": result.fallback_reason},
            )
        return _turn_view(state_container, result)

    @app.get("/summary")
    async def summary(request: Request) -> dict[str, object]:
        """Return today's dashboard totals."""
        state_container: AppContainer = request.app.state.container
        return dataclasses.asdict(state_container.session_controller.summary())

    return app


def _profile_view(profile: UserProfile) -> dict[str, object]:
    view = dataclasses.asdict(profile)
    view["effective_target"] = profile.effective_target
    return view


def _session_view(state: SessionState) -> dict[str, object]:
    return {
        "profile": _profile_view(state.profile),
        "chat_history": [dataclasses.asdict(message) for message in state.chat_history],
        "food_log": [dataclasses.asdict(entry) for entry in state.food_log],
        "activity_log": [dataclasses.asdict(entry) for entry in state.activity_log],
        "insight": dataclasses.asdict(state.insight) if state.insight else None,
        "busy": state.busy,
    }


def _turn_view(state_container: AppContainer, result: TurnResult) -> dict[str, object]:
    """Serialize a turn, exposing the fallback reason only locally."""
    view = dataclasses.asdict(result)
    if state_container.settings.environment != "local":
        view.pop("fallback_reason")
    return view
