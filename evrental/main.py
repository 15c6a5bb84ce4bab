import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from evrental.api.v1.workflow import router as workflow_router
from evrental.core.config import settings
from evrental.wiring.dependencies import shutdown


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("booking_id", "operation", "status", "reason"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


@asynccontextmanager
async def lifespan(_: FastAPI):
    yield
    await shutdown()


app = FastAPI(title="EV Rental Booking Workflow", version="1.0.0", lifespan=lifespan)

app.include_router(workflow_router, prefix="/api/v1", tags=["workflow"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
