# core/generation.py
from transformers import pipeline
from config.settings import settings
from core.entities import LengthBand
from core.model_registry import ModelRegistry
from util.enums import ModelName
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


def load_generation_model():
    """
    Load the abstractive summarization pipeline on CPU.
    """
    name = settings.GENERATION_MODEL_NAME
    pipe = pipeline("summarization", model=name, tokenizer=name, device=-1)
    logger.info("generate.model.ready model=%s", name)
    return pipe


class Generator:
    def __init__(self, registry: ModelRegistry) -> None:
        self._registry = registry

    def generate(self, input_text: str, max_length: int, min_length: int) -> str:
        """
        Generate text whose length (in model tokens) falls inside
        [min_length, max_length]. Greedy/beam decoding only, so the same input
        and bounds always give the same output.
        """
        band = LengthBand.of((min_length, max_length))
        model = self._registry.get(ModelName.GENERATION)
        with timed(
            logger,
            "generate",
            chars=len(input_text),
            min=band.min_length,
            max=band.max_length,
        ):
            out = model(
                input_text,
                max_length=band.max_length,
                min_length=band.min_length,
                do_sample=False,
                truncation=True,
            )
        text = ""
        if out and isinstance(out, list):
            node = out[0]
            if isinstance(node, dict):
                text = node.get("summary_text") or node.get("generated_text") or ""
        return text.strip()
