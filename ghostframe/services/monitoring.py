"""
Health checks and monitoring with Prometheus metrics
"""
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi.responses import Response
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
import time
import psutil
import structlog
from sqlmodel import Session, select

from ghostframe.services.cache import cache
from ghostframe.services.llm import get_router
from ghostframe.db import engine
from ghostframe.models import Content, Quiz, Story, User

logger = structlog.get_logger()

# Prometheus metrics
REQUEST_COUNT = Counter('http_requests_total', 'Total HTTP requests', ['method', 'endpoint', 'status'])
REQUEST_DURATION = Histogram('http_request_duration_seconds', 'HTTP request duration', ['method', 'endpoint'])
AI_GENERATION_REQUESTS = Counter('ai_generation_requests_total', 'Total AI generation requests', ['type', 'status'])
CONTENT_UPLOADS = Counter('content_uploads_total', 'Total content uploads', ['status'])
STORED_RECORDS = Gauge('stored_records_total', 'Number of stored records', ['kind'])


class HealthChecker:
    def __init__(self):
        self.start_time = time.time()

    def check_database(self) -> dict:
        """Check database connectivity"""
        try:
            with Session(engine) as session:
                session.exec(select(func.count()).select_from(User)).one()
            return {
                "status": "healthy",
                "message": "Database connection successful"
            }
        except SQLAlchemyError as e:
            logger.error("database_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "message": f"Database connection failed: {str(e)}"
            }

    def check_cache(self) -> dict:
        """Check cache round trip"""
        test_key = "health_check_test"
        cache.set(test_key, "test_value", expire=10)
        value = cache.get(test_key)
        cache.delete(test_key)

        if value == "test_value":
            return {
                "status": "healthy",
                "message": "Cache operations successful",
                "backend": cache.backend
            }
        logger.error("cache_health_check_failed", backend=cache.backend)
        return {
            "status": "unhealthy",
            "message": "Cache operations failed",
            "backend": cache.backend
        }

    def check_llm(self) -> dict:
        """Check that some AI provider is configured"""
        providers = get_router().available_providers()
        if providers:
            return {
                "status": "healthy",
                "message": "AI providers configured",
                "providers": providers
            }
        return {
            "status": "unhealthy",
            "message": "No AI provider configured",
            "providers": []
        }

    def get_system_metrics(self) -> dict:
        """Get system resource metrics"""
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')
        return {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": memory.percent,
            "memory_available_gb": round(memory.available / (1024**3), 2),
            "disk_percent": disk.percent,
            "disk_free_gb": round(disk.free / (1024**3), 2),
            "uptime_seconds": time.time() - self.start_time
        }

    def get_application_metrics(self) -> dict:
        """Get application-specific metrics"""
        try:
            with Session(engine) as session:
                counts = {
                    kind: session.exec(select(func.count()).select_from(model)).one()
                    for kind, model in (("users", User), ("contents", Content),
                                        ("quizzes", Quiz), ("stories", Story))
                }
        except SQLAlchemyError as e:
            logger.error("application_metrics_failed", error=str(e))
            return {"error": str(e)}

        for kind, count in counts.items():
            STORED_RECORDS.labels(kind=kind).set(count)
        counts["cache_backend"] = cache.backend
        return counts

    def get_health_status(self) -> dict:
        """Get overall health status"""
        checks = {
            "database": self.check_database(),
            "cache": self.check_cache(),
            "llm": self.check_llm()
        }

        unhealthy_checks = [name for name, check in checks.items() if check["status"] == "unhealthy"]
        overall_status = "healthy" if not unhealthy_checks else "unhealthy"

        return {
            "status": overall_status,
            "timestamp": time.time(),
            "checks": checks,
            "system_metrics": self.get_system_metrics(),
            "application_metrics": self.get_application_metrics(),
            "unhealthy_components": unhealthy_checks
        }


# Global health checker instance
health_checker = HealthChecker()


def get_metrics():
    """Get Prometheus metrics"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
