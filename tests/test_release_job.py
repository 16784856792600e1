from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

from smart_train.jobs.release_job import EscrowReleaseJob
from smart_train.services.escrow_service import purchase_ticket


def test_run_once_uses_injected_clock(app, make_user, make_ticket, wallet_of, now):
    seller, buyer = make_user(), make_user()
    ticket = make_ticket(seller, trip_start=now, duration=60)
    purchase_ticket(ticket.id, buyer.id)

    early = EscrowReleaseJob(app, clock=lambda: now + timedelta(minutes=29), scheduler=MagicMock())
    late = EscrowReleaseJob(app, clock=lambda: now + timedelta(minutes=31), scheduler=MagicMock())

    assert early.run_once()["released"] == 0
    assert wallet_of(seller).locked_balance == Decimal("90")

    assert late.run_once()["released"] == 1
    assert wallet_of(seller).available_balance == Decimal("90")


def test_start_registers_single_interval_job(app):
    scheduler = MagicMock()
    scheduler.running = False
    job = EscrowReleaseJob(app, interval_seconds=60, scheduler=scheduler)

    job.start()

    kwargs = scheduler.add_job.call_args.kwargs
    assert kwargs["id"] == EscrowReleaseJob.JOB_ID
    assert kwargs["replace_existing"] is True
    assert kwargs["trigger"].interval == timedelta(seconds=60)
    scheduler.start.assert_called_once()


def test_scheduled_run_survives_errors(app, monkeypatch):
    job = EscrowReleaseJob(app, scheduler=MagicMock())
    monkeypatch.setattr(job, "run_once", MagicMock(side_effect=RuntimeError("boom")))

    job._run_scheduled()

    job.run_once.assert_called_once()


def test_default_interval_comes_from_config(app):
    job = EscrowReleaseJob(app, scheduler=MagicMock())
    assert job.interval_seconds == app.config["RELEASE_SWEEP_INTERVAL"] == 60
