from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from gestao_financeira.routes import health
from gestao_financeira.routes import auth as auth_routes
from gestao_financeira.routes import users as users_routes
from gestao_financeira.routes import companies as companies_routes
from gestao_financeira.routes import categories as categories_routes
from gestao_financeira.routes import revenues as revenues_routes
from gestao_financeira.routes import expenses as expenses_routes
from gestao_financeira.routes import transactions as transactions_routes
from gestao_financeira.routes import pendencies as pendencies_routes
from gestao_financeira.routes import dashboard as dashboard_routes
from gestao_financeira.routes import cashflow as cashflow_routes
from gestao_financeira.routes import reports as reports_routes
from gestao_financeira.db import session as db_session
from gestao_financeira.core.config import settings
import logging
import threading
from collections import defaultdict
import time

app = FastAPI(
    title="Gestão Financeira API",
    version="1.0.0",
    description="Receitas, despesas, fluxo de caixa, relatórios e pendências de pequenas empresas",
    # Avoid automatic 307 redirects between /path and /path/
    # Root endpoints are registered in both forms instead.
    redirect_slashes=False,
)

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))
# Dedicated logger to avoid uvicorn.access formatter expectations
_req_logger = logging.getLogger("gestao_financeira.request")
_req_logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))

# In-memory request counters per method + raw URL path, guarded by a lock
_request_counts = defaultdict(int)
_req_lock = threading.Lock()
_global_request_count = 0


@app.middleware("http")
async def request_count_middleware(request: Request, call_next):
    # routing has not run yet, so there is no path template to key by
    key = f"{request.method} {request.url.path}"

    with _req_lock:
        _request_counts[key] += 1
        count_val = _request_counts[key]
        global _global_request_count
        _global_request_count += 1
        global_count_val = _global_request_count

    # Log every N hits to avoid spam
    if count_val % settings.REQUEST_LOG_EVERY_N == 0:
        _req_logger.info("Request count threshold reached: %s -> %s (global=%s)", key, count_val, global_count_val)

    # the SQLAlchemy listener increments this during the request
    db_count_token = db_session.request_db_query_count.set(0)
    start = time.perf_counter()
    try:
        response = await call_next(request)
    finally:
        per_req_db_count = db_session.request_db_query_count.get()
        db_session.request_db_query_count.reset(db_count_token)
    duration_ms = int((time.perf_counter() - start) * 1000)

    if settings.REQUEST_LOG_VERBOSE:
        prefixes = [p.strip() for p in (settings.REQUEST_LOG_INCLUDE_PREFIXES or "").split(",") if p.strip()]
        path_full = request.url.path
        if any(path_full.startswith(pref) for pref in prefixes):
            qs = request.url.query
            path_qs = f"{path_full}?{qs}" if qs else path_full
            _req_logger.info(
                "%s %s -> %s in %sms | route_count=%s global_count=%s",
                request.method, path_qs, response.status_code, duration_ms, count_val, global_count_val,
            )
            if isinstance(per_req_db_count, int):
                _req_logger.info("Foram %s requisições ao banco nesta requisição.", per_req_db_count)
            _req_logger.info(
                "Total global de requisições ao banco desde o início: %s.",
                db_session.get_global_db_queries_total(),
            )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(health.router)
app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(companies_routes.router)
app.include_router(categories_routes.router)
app.include_router(revenues_routes.router)
app.include_router(expenses_routes.router)
app.include_router(transactions_routes.router)
app.include_router(pendencies_routes.router)
app.include_router(dashboard_routes.router)
app.include_router(cashflow_routes.router)
app.include_router(reports_routes.router)


@app.on_event("startup")
def on_startup():
    # create missing tables and seed the category lookup
    db_session.create_db()


@app.get("/")
def root():
    return {"status": "API rodando com sucesso 🚀"}
