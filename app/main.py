"""FastAPI application serving the restaurant back-office API."""

from typing import Dict

from fastapi import FastAPI

from app.api.routes.dashboard import router as dashboard_router
from app.api.routes.menu import router as menu_router
from app.api.routes.orders import router as orders_router
from app.api.routes.promotions import router as promotions_router
from app.api.routes.reports import router as reports_router

app = FastAPI(title="Restaurant Back Office")

app.include_router(dashboard_router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(reports_router)
app.include_router(orders_router)
app.include_router(menu_router)
app.include_router(promotions_router)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="127.0.0.1", port=8000, reload=True)
