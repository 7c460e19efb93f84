# addressfmt/api/main.py

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI
from pydantic import BaseModel, Field

from addressfmt import __version__
from addressfmt.config import FormatterConfig
from addressfmt.formatter import AddressFormatter
from addressfmt.telemetry import FormatMetrics


logger = logging.getLogger(__name__)


class FormatRequest(BaseModel):
    components: Dict[str, Any] = Field(..., description="Address components, e.g. road, city, postcode")
    country: Optional[str] = Field(default=None, description="ISO 3166-1 alpha-2 code overriding detection")
    abbreviate: bool = Field(default=False, description="Apply common abbreviations")


class FormatResponse(BaseModel):
    formatted: str
    country_code: Optional[str] = None
    template: str


@lru_cache(maxsize=1)
def get_metrics() -> FormatMetrics:
    return FormatMetrics()


@lru_cache(maxsize=1)
def get_formatter() -> AddressFormatter:
    """Formatter built once from the environment config."""
    config = FormatterConfig.from_env()
    logging.basicConfig(level=config.log_level)
    logger.info(f"Loading address rules from {config.conf_dir}")
    return AddressFormatter(config=config, metrics=get_metrics())


app = FastAPI(
    title="addressfmt API",
    description="Format structured postal addresses according to country conventions.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.post("/format", response_model=FormatResponse)
def format_address(request: FormatRequest, formatter: AddressFormatter = Depends(get_formatter)):
    """
    Format one address.

    The response always contains a string ending with a newline, possibly
    just "\\n" for empty input.
    """
    trace = formatter.format_with_trace(
        request.components,
        country=request.country,
        abbreviate=request.abbreviate,
    )
    return FormatResponse(formatted=trace.text, country_code=trace.country_code, template=trace.template)


@app.get("/health")
def health(formatter: AddressFormatter = Depends(get_formatter)):
    store = formatter.store
    return {
        "status": "healthy",
        "version": __version__,
        "countries": len(store.templates),
        "components": len(store.ordered_components),
        "rule_warnings": len(store.warnings),
        "cached_templates": len(formatter.cache),
    }


@app.get("/metrics")
def metrics(metrics: FormatMetrics = Depends(get_metrics)):
    return metrics.get_summary()
