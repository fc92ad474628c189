"""
Markov text generation router.
Trains, samples from, and reports on named in-memory models.
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from markov_service.config import settings
from markov_service.services.markov import (
    GenerationOptions,
    MarkovModel,
    ValidationError,
    create_model,
    options_to_dict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/markov", tags=["markov"])

# In-memory model cache (CPU-friendly)
MODEL_CACHE: dict[str, MarkovModel] = {}


class CreateModelRequest(BaseModel):
    model_name: str = "default"
    order: int = Field(default=settings.MARKOV_DEFAULT_ORDER)


class TrainRequest(BaseModel):
    text: str
    model_name: str = "default"
    order: int = Field(default=settings.MARKOV_DEFAULT_ORDER, description="Used only when the model is created")


class GenerateRequest(BaseModel):
    model_name: str = "default"
    start_phrase: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    temperature: Optional[float] = None
    end_on_sentence: Optional[bool] = None

    def to_options(self) -> GenerationOptions:
        """Fill unset fields from settings defaults."""
        return GenerationOptions(
            min_length=settings.DEFAULT_MIN_LENGTH if self.min_length is None else self.min_length,
            max_length=settings.DEFAULT_MAX_LENGTH if self.max_length is None else self.max_length,
            temperature=settings.DEFAULT_TEMPERATURE if self.temperature is None else self.temperature,
            end_on_sentence=(
                settings.DEFAULT_END_ON_SENTENCE if self.end_on_sentence is None else self.end_on_sentence
            ),
        )


def _get_model(name: str) -> MarkovModel:
    model = MODEL_CACHE.get(name)
    if model is None:
        raise HTTPException(status_code=404, detail="model not found, train first")
    return model


def _store_model(name: str, order: int) -> MarkovModel:
    if name not in MODEL_CACHE and len(MODEL_CACHE) >= settings.MARKOV_MAX_MODELS:
        raise HTTPException(status_code=409, detail="model limit reached")
    try:
        model = create_model(order)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    MODEL_CACHE[name] = model
    logger.info(f"[Markov] Created model '{name}' (order={order})")
    return model


@router.post("/models")
async def create(req: CreateModelRequest):
    model = _store_model(req.model_name, req.order)
    return {"ok": True, "data": {"model": req.model_name, "order": model.order}}


@router.get("/models")
async def list_models():
    models = [{"model": name, "order": m.order} for name, m in MODEL_CACHE.items()]
    return {"ok": True, "data": {"models": models}}


@router.post("/train")
async def train(req: TrainRequest):
    model = MODEL_CACHE.get(req.model_name)
    created = model is None
    if created:
        model = _store_model(req.model_name, req.order)
    try:
        model.train(req.text)
    except ValidationError as e:
        # a model created for this request is dropped again
        if created:
            MODEL_CACHE.pop(req.model_name, None)
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "ok": True,
        "data": {
            "model": req.model_name,
            "order": model.order,
            "stats": model.get_stats().to_dict(),
        },
    }


@router.post("/generate")
async def generate(req: GenerateRequest):
    model = _get_model(req.model_name)
    options = req.to_options()
    try:
        text = model.generate(req.start_phrase, options)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "data": {"text": text, "options": options_to_dict(options)}}


@router.get("/models/{model_name}/stats")
async def stats(model_name: str):
    model = _get_model(model_name)
    return {"ok": True, "data": model.get_stats().to_dict()}
