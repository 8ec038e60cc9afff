import os
import time
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from .routes import router
from .core import kafka_startup, redis_startup, init_metrics, shutdown_connections
from .errors import BoingBoxError
from .file_storage import UPLOAD_DIR, PUBLIC_PREFIX
from .media_pipeline import media_pipeline
from .models import init_models
import logging
from pythonjsonlogger import jsonlogger

# setup structured logging
logger = logging.getLogger('boingbox')
handler = logging.StreamHandler()
formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
handler.setFormatter(formatter)
logger.addHandler(handler)
logger.setLevel(logging.INFO)

STARTED_AT = time.monotonic()

app = FastAPI(title="BoingBox API", version="2.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[os.getenv('CLIENT_URL', '*')],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(router, prefix="/api")
app.mount(PUBLIC_PREFIX, StaticFiles(directory=UPLOAD_DIR, check_dir=False), name='uploads')

@app.exception_handler(BoingBoxError)
async def boingbox_error_handler(request: Request, exc: BoingBoxError):
    return JSONResponse(status_code=exc.status_code, content={'detail': exc.message})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [{'loc': list(e.get('loc', ())), 'msg': e.get('msg')} for e in exc.errors()]
    return JSONResponse(status_code=400, content={'detail': 'Invalid request', 'errors': errors})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception({'msg': 'unhandled_error', 'path': request.url.path, 'error': str(exc)})
    detail = str(exc) if os.getenv('ENVIRONMENT') == 'development' else 'Internal server error'
    return JSONResponse(status_code=500, content={'detail': detail})

@app.get('/health')
async def health():
    return {
        'status': 'ok',
        'uptime': int(time.monotonic() - STARTED_AT),
        'media_pipeline': media_pipeline.get_stats(),
    }

@app.get('/')
async def root():
    return {'name': 'BoingBox API', 'version': app.version}

@app.middleware('http')
async def log_requests(request: Request, call_next):
    logger.info({'msg':'request_start','method':request.method,'path':request.url.path})
    response = await call_next(request)
    logger.info({'msg':'request_end','status': response.status_code})
    return response

@app.on_event("startup")
async def startup():
    # Best-effort init, don't block app from starting if a dependency fails
    try:
        await redis_startup()
    except Exception as e:
        logger.warning({'msg': 'redis_start_failed', 'error': str(e)})
    try:
        await kafka_startup()
    except Exception as e:
        logger.warning({'msg': 'kafka_start_failed', 'error': str(e)})
    try:
        init_metrics()
    except Exception as e:
        logger.warning({'msg': 'metrics_init_failed', 'error': str(e)})
    if os.getenv('DB_CREATE_ALL', 'true').lower() in ('1', 'true', 'yes'):
        await init_models()
    await media_pipeline.start()

@app.on_event("shutdown")
async def shutdown():
    await media_pipeline.stop()
    await shutdown_connections()
