from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .cache import TTLCache
from .casualties import DATA_SOURCE_ESTIMATED, DATA_SOURCE_MEASURED, casualties_for, classify_density, estimate_density
from .config import Settings, configure_logging
from .errors import ComputationError, InvalidInput, UpstreamUnavailable
from .geocode import ReverseGeocoder, place_name_or_coordinates
from .impact_model import compute_impact_effects
from .mitigation import MitigationStrategy, compute_mitigation
from .population import DensityProvider, PopulationGrid, density_or_none
from .zones import zones_feature_collection

logger = logging.getLogger(__name__)

router = APIRouter()

# -------------------------------
# Request models
# -------------------------------

class ImpactRequest(BaseModel):
    diameter: float = Field(..., strict=True, gt=0, allow_inf_nan=False, description="Impactor diameter in meters")
    velocity: float = Field(..., strict=True, gt=0, allow_inf_nan=False, description="Impact velocity in km/s")
    angle: float = Field(..., strict=True, gt=0, le=90, allow_inf_nan=False, description="Entry angle to horizontal in degrees")
    density: float = Field(..., strict=True, gt=0, allow_inf_nan=False, description="Bulk density in kg/m^3")
    lat: float = Field(..., strict=True, ge=-90, le=90, allow_inf_nan=False, description="Latitude in decimal degrees")
    lon: float = Field(..., strict=True, ge=-180, le=180, allow_inf_nan=False, description="Longitude in decimal degrees")


class AsteroidParamsIn(BaseModel):
    diameter: float = Field(..., strict=True, gt=0, allow_inf_nan=False, description="Impactor diameter in meters")
    velocity: float = Field(..., strict=True, gt=0, allow_inf_nan=False, description="Impact velocity in km/s")
    lat: float = Field(..., strict=True, ge=-90, le=90, allow_inf_nan=False)
    lon: float = Field(..., strict=True, ge=-180, le=180, allow_inf_nan=False)


class MitigationRequest(BaseModel):
    asteroidParams: AsteroidParamsIn
    mitigationType: MitigationStrategy
    warningTime: float = Field(..., strict=True, gt=0, allow_inf_nan=False, description="Years between maneuver and encounter")
    velocityChange: float = Field(..., strict=True, gt=0, allow_inf_nan=False, description="Velocity change in cm/s")


# -------------------------------
# Error mapping
# -------------------------------

def _invalid_response(field: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={
        "error": "Invalid input",
        "field": field,
        "message": f"{field}: {message}",
    })


async def _on_request_validation_error(request: Request, exc: RequestValidationError):
    err = exc.errors()[0] if exc.errors() else {"loc": ("body",), "msg": "invalid request"}
    if err.get("type") == "json_invalid":
        field = "body"
    else:
        field = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query")) or "body"
    logger.info("[request.invalid] path=%s field=%s msg=%s", request.url.path, field, err.get("msg"))
    return _invalid_response(field, err.get("msg", "invalid value"))


async def _on_invalid_input(request: Request, exc: InvalidInput):
    logger.info("[request.invalid] path=%s field=%s msg=%s", request.url.path, exc.field, exc.message)
    return _invalid_response(exc.field, exc.message)


async def _on_computation_error(request: Request, exc: ComputationError):
    logger.error("[compute.error] path=%s %s", request.url.path, exc, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Failed to calculate impact"})


async def _on_unexpected_error(request: Request, exc: Exception):
    logger.exception("[server.error] path=%s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Failed to calculate impact"})


# -------------------------------
# Health + lookup endpoints
# -------------------------------

@router.get("/health")
def health(request: Request):
    return {"status": "ok", "populationGrid": request.app.state.population_grid is not None}


@router.get("/api/population-density")
def population_density(
    request: Request,
    lat: float = Query(..., ge=-90, le=90, description="Latitude in decimal degrees"),
    lon: float = Query(..., ge=-180, le=180, description="Longitude in decimal degrees"),
):
    state = request.app.state
    density = density_or_none(state.population_grid, lat, lon,
                              cache=state.density_cache, precision=state.settings.cache_coord_precision)
    if density is None:
        density, category = estimate_density(lat, lon)
        source = DATA_SOURCE_ESTIMATED
    else:
        category = classify_density(density)
        source = DATA_SOURCE_MEASURED
    return {"lat": lat, "lon": lon, "populationDensity": density,
            "locationCategory": category.value, "dataSource": source}


# -------------------------------
# Impact + mitigation endpoints
# -------------------------------

@router.post("/api/calculate-impact")
def calculate_impact(req: ImpactRequest, request: Request):
    state = request.app.state
    precision = state.settings.cache_coord_precision
    logger.info("[impact] d=%s v=%s angle=%s rho=%s lat=%s lon=%s",
                req.diameter, req.velocity, req.angle, req.density, req.lat, req.lon)

    effects = compute_impact_effects(req.diameter, req.velocity, req.angle, req.density, req.lat, req.lon)
    density = density_or_none(state.population_grid, req.lat, req.lon,
                              cache=state.density_cache, precision=precision)
    population = casualties_for(effects, population_density=density)
    location_name = place_name_or_coordinates(state.geocoder, req.lat, req.lon,
                                              cache=state.place_cache, precision=precision)

    logger.info("[impact.done] energy_mt=%.2f fatalities=%d severity=%s source=%s",
                effects.energy_megatons, population.estimated_fatalities,
                population.severity.value, population.data_source)
    result = effects.to_dict()
    result["populationImpact"] = population.to_dict()
    result["locationName"] = location_name
    return result


@router.post("/api/impact-zones")
def impact_zones(req: ImpactRequest):
    effects = compute_impact_effects(req.diameter, req.velocity, req.angle, req.density, req.lat, req.lon)
    return zones_feature_collection(effects)


@router.post("/api/calculate-mitigation")
def calculate_mitigation(req: MitigationRequest):
    a = req.asteroidParams
    logger.info("[mitigation] type=%s years=%s dv_cms=%s d=%s",
                req.mitigationType.value, req.warningTime, req.velocityChange, a.diameter)
    outcome = compute_mitigation(a.diameter, a.velocity, a.lat, a.lon,
                                 req.mitigationType, req.warningTime, req.velocityChange)
    return outcome.to_dict()


# -------------------------------
# Application factory
# -------------------------------

def _load_population_grid(settings: Settings) -> Optional[PopulationGrid]:
    if not settings.population_csv_path:
        logger.info("[population] no POPULATION_CSV_PATH; using geographic estimation")
        return None
    try:
        return PopulationGrid.from_csv(settings.population_csv_path)
    except UpstreamUnavailable as e:
        logger.warning("[population] grid unavailable, using geographic estimation: %s", e)
        return None


# uvicorn --factory impactsim.app:create_app
def create_app(settings: Optional[Settings] = None,
               population_grid: Optional[DensityProvider] = None,
               geocoder: Optional[ReverseGeocoder] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    if population_grid is None:
        population_grid = _load_population_grid(settings)
    if geocoder is None and settings.geocoder_enabled:
        geocoder = ReverseGeocoder(url=settings.geocoder_url,
                                   user_agent=settings.geocoder_user_agent,
                                   timeout_s=settings.geocoder_timeout_s)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if app.state.geocoder is not None:
            app.state.geocoder.close()

    app = FastAPI(title="Asteroid impact & mitigation estimator", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.population_grid = population_grid
    app.state.geocoder = geocoder if settings.geocoder_enabled else None
    app.state.density_cache = TTLCache(settings.cache_ttl_s, settings.cache_max_entries)
    app.state.place_cache = TTLCache(settings.cache_ttl_s, settings.cache_max_entries)

    app.add_middleware(CORSMiddleware, allow_origins=list(settings.cors_origins),
                       allow_methods=["GET", "POST", "OPTIONS"], allow_headers=["Content-Type"])
    app.add_exception_handler(RequestValidationError, _on_request_validation_error)
    app.add_exception_handler(InvalidInput, _on_invalid_input)
    app.add_exception_handler(ComputationError, _on_computation_error)
    app.add_exception_handler(Exception, _on_unexpected_error)
    app.include_router(router)
    return app

