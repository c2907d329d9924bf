from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.responses import Response

from api.schemas import (
    ConfusionCell,
    ConfusionResponse,
    FeatureRowModel,
    HealthResponse,
    InfoResponse,
    PredictionResponse,
)
from diabetes_core.errors import InvalidInput, SchemaMismatch
from diabetes_core.service import ServiceContext, build_context
from diabetes_core.utils import get_logger, load_config


DEFAULT_INFO = {
    "name": "Saurabh Gupta",
    "github_pages_url": "https://apexdataworld.github.io/ST558_Final_Project/",
}

CONTEXT: Optional[ServiceContext] = None

LOGGER = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build defaults, model and confusion matrix before serving traffic."""
    global CONTEXT
    CONTEXT = build_context(load_config())
    yield


app = FastAPI(title="Diabetes Health Indicators API", version="1.0.0", lifespan=lifespan)


def get_context() -> ServiceContext:
    if CONTEXT is None:
        raise HTTPException(status_code=503, detail="Service is still starting up")
    return CONTEXT


@app.get("/healthz", response_model=HealthResponse)
def healthz() -> HealthResponse:
    if CONTEXT is None:
        return HealthResponse(status="starting", model="")
    return HealthResponse(status="ok", model=CONTEXT.model.name)


@app.get("/pred", response_model=PredictionResponse)
def pred_endpoint(
    HighBP: Optional[str] = Query(None, description="Blood pressure status (No/Yes). Default: most prevalent."),
    BMI: Optional[str] = Query(None, description="Body Mass Index. Default: mean BMI."),
    Smoker: Optional[str] = Query(None, description="Smoking status (No/Yes). Default: most prevalent."),
    HeartDiseaseorAttack: Optional[str] = Query(
        None, description="Heart disease / attack history (No/Yes). Default: most prevalent."
    ),
    PhysActivity: Optional[str] = Query(None, description="Physical activity (No/Yes). Default: most prevalent."),
    Sex: Optional[str] = Query(None, description="Sex (Female/Male). Default: most prevalent."),
    context: ServiceContext = Depends(get_context),
) -> PredictionResponse:
    raw = {
        "HighBP": HighBP,
        "BMI": BMI,
        "Smoker": Smoker,
        "HeartDiseaseorAttack": HeartDiseaseorAttack,
        "PhysActivity": PhysActivity,
        "Sex": Sex,
    }
    try:
        result = context.handler.predict(raw)
    except InvalidInput as exc:
        raise HTTPException(status_code=400, detail=exc.to_dict())
    except SchemaMismatch as exc:
        LOGGER.error("Model/schema mismatch while scoring %s: %s", raw, exc)
        raise HTTPException(status_code=500, detail=f"Model schema mismatch: {exc}")
    LOGGER.info(
        "Predicted %s (p=%.4f) with provided=%s",
        result.predicted_class,
        result.prob_diabetes,
        sorted(key for key, value in raw.items() if value is not None),
    )
    return PredictionResponse(
        input=FeatureRowModel(**result.input),
        predicted_class=result.predicted_class,
        prob_Diabetes=result.prob_diabetes,
    )


@app.get("/info", response_model=InfoResponse)
def info_endpoint() -> InfoResponse:
    payload = dict(DEFAULT_INFO)
    if CONTEXT is not None:
        payload.update(CONTEXT.info)
    return InfoResponse(name=payload["name"], github_pages_url=payload["github_pages_url"])


@app.get("/confusion", response_model=ConfusionResponse)
def confusion_endpoint(context: ServiceContext = Depends(get_context)) -> ConfusionResponse:
    matrix = context.confusion
    return ConfusionResponse(
        labels=list(matrix.labels),
        matrix=[ConfusionCell(**cell) for cell in matrix.cells()],
        total=matrix.total,
        excluded=matrix.excluded,
    )


@app.get("/confusion/heatmap")
def confusion_heatmap(context: ServiceContext = Depends(get_context)) -> Response:
    return Response(content=context.confusion_png, media_type="image/png")


if __name__ == "__main__":
    import uvicorn

    server_cfg = load_config().get("server", {})
    uvicorn.run(app, host=server_cfg.get("host", "0.0.0.0"), port=int(server_cfg.get("port", 8000)), log_level="info")
