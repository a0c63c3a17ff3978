from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mealplan.api.routes import router as api_router
from mealplan.errors import MealPlanError
from mealplan.logging import configure_logging, get_logger
from mealplan.services.llm.dspy_client import configure_dspy
from mealplan.storage.db import create_db_and_tables

app = FastAPI(title="Meal Plan API")
logger = get_logger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MealPlanError)
def handle_meal_plan_error(request: Request, exc: MealPlanError) -> JSONResponse:
    logger.info("request.failed path=%s kind=%s status=%s", request.url.path, exc.kind, exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    logger.info("startup: configuring services")
    configure_dspy()
    create_db_and_tables()


app.include_router(api_router)
