from core.config import settings
from infrastructure.tasks import celery_app
from infrastructure.tasks.config.beat import CELERY_BEAT_SCHEDULE
from infrastructure.tasks.worker import build_argv


def test_sweep_is_scheduled_on_high_queue():
    entry = CELERY_BEAT_SCHEDULE["orders-sweep-expired-momo"]
    assert entry["task"] == "orders.sweep_expired_momo"
    assert entry["kwargs"] == {"timeout_minutes": settings.order.momo_payment_timeout_minutes}
    assert celery_app.conf.task_routes["orders.*"] == {"queue": "high"}


def test_worker_argv():
    argv = build_argv(["--beat"])
    assert argv[0] == "worker"
    assert "--queues=high,default,low" in argv
    assert argv[-1] == "--beat"
