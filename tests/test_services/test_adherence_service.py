"""
Tests for Adherence Service
Tests the log status state machine and adherence aggregation
"""

import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime, time, timedelta

from config import settings
from exceptions import InvalidTransition
from models import MedicationLog, LogStatus
from services.adherence_service import (
    AdherenceService,
    aggregate,
    can_transition,
    transition,
    mark_taken,
    mark_skipped,
)
from schemas.adherence import MedicationLogResponse
from tools.schedule_time import DateWindow
from tests.conftest import add_medication, add_log


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def morning(test_day):
    return datetime.combine(test_day, time(8, 0))


@pytest.fixture
def upcoming_log(morning):
    """Unsaved upcoming log"""
    return MedicationLog(id=1, medication_id=1, scheduled_time=morning, status=LogStatus.UPCOMING)


def _log(medication_id, scheduled_time, status=LogStatus.UPCOMING):
    return MedicationLog(medication_id=medication_id, scheduled_time=scheduled_time, status=status)


# =============================================================================
# Test State Machine
# =============================================================================

class TestTransitions:
    """Tests for allowed and rejected status changes"""

    def test_upcoming_to_taken(self, upcoming_log, morning):
        """Taking a dose stamps the action time"""
        now = morning + timedelta(minutes=5)
        mark_taken(upcoming_log, now)
        assert upcoming_log.status == LogStatus.TAKEN
        assert upcoming_log.action_time == now

    def test_upcoming_to_skipped(self, upcoming_log, morning):
        now = morning + timedelta(hours=2)
        mark_skipped(upcoming_log, now)
        assert upcoming_log.status == LogStatus.SKIPPED
        assert upcoming_log.action_time == now

    def test_action_time_defaults_to_now(self, upcoming_log):
        transition(upcoming_log, "taken")
        assert upcoming_log.action_time is not None
        assert upcoming_log.action_time >= datetime.combine(upcoming_log.scheduled_time.date(), time.min)

    def test_acting_early_in_the_day_allowed(self, upcoming_log, test_day):
        """A dose may be recorded before its scheduled time on the same day"""
        now = datetime.combine(test_day, time(6, 30))
        mark_taken(upcoming_log, now)
        assert upcoming_log.action_time == now

    def test_acting_before_the_day_rejected(self, upcoming_log, test_day):
        with pytest.raises(ValueError):
            mark_taken(upcoming_log, datetime.combine(test_day - timedelta(days=1), time(23, 0)))
        assert upcoming_log.status == LogStatus.UPCOMING

    @pytest.mark.parametrize("terminal", [LogStatus.TAKEN, LogStatus.SKIPPED])
    @pytest.mark.parametrize("requested", [LogStatus.TAKEN, LogStatus.SKIPPED, LogStatus.UPCOMING])
    def test_terminal_states_reject_everything(self, upcoming_log, morning, terminal, requested):
        """Terminal statuses are never overwritten"""
        first_action = morning + timedelta(minutes=5)
        transition(upcoming_log, terminal, first_action)

        with pytest.raises(InvalidTransition) as exc_info:
            transition(upcoming_log, requested, morning + timedelta(hours=1))

        assert upcoming_log.status == terminal
        assert upcoming_log.action_time == first_action
        assert exc_info.value.current == terminal.value
        assert exc_info.value.requested == requested.value

    def test_upcoming_to_upcoming_rejected(self, upcoming_log):
        with pytest.raises(InvalidTransition):
            transition(upcoming_log, LogStatus.UPCOMING)

    def test_unknown_status_rejected(self, upcoming_log):
        with pytest.raises(ValueError):
            transition(upcoming_log, "missed")

    def test_can_transition(self):
        assert can_transition(LogStatus.UPCOMING, LogStatus.TAKEN)
        assert can_transition("upcoming", "skipped")
        assert not can_transition(LogStatus.TAKEN, LogStatus.SKIPPED)
        assert not can_transition(LogStatus.SKIPPED, LogStatus.UPCOMING)


# =============================================================================
# Test Aggregation
# =============================================================================

class TestAggregate:
    """Tests for the pure aggregation function"""

    def test_counts_and_rate(self, test_day):
        window = DateWindow.for_day(test_day)
        logs = [
            _log(1, datetime.combine(test_day, time(8, 0)), LogStatus.TAKEN),
            _log(1, datetime.combine(test_day, time(20, 0)), LogStatus.SKIPPED),
            _log(2, datetime.combine(test_day, time(9, 0)), LogStatus.TAKEN),
            _log(2, datetime.combine(test_day, time(21, 0))),
        ]

        summary = aggregate(logs, window)

        assert summary.total == 4
        assert summary.taken == 2
        assert summary.skipped == 1
        assert summary.pending_count == 1
        assert summary.rate == 0.5

    def test_empty_rate_is_zero(self, test_day):
        summary = aggregate([], DateWindow.for_day(test_day))
        assert summary.total == 0
        assert summary.rate == 0.0

    def test_end_boundary_excluded(self, test_day):
        window = DateWindow.for_day(test_day)
        logs = [
            _log(1, window.start, LogStatus.TAKEN),
            _log(1, window.end, LogStatus.TAKEN),
        ]

        summary = aggregate(logs, window)

        assert summary.total == 1

    def test_orphans_excluded_when_ids_known(self, test_day):
        window = DateWindow.for_day(test_day)
        logs = [
            _log(1, datetime.combine(test_day, time(8, 0)), LogStatus.TAKEN),
            _log(99, datetime.combine(test_day, time(8, 0)), LogStatus.SKIPPED),
        ]

        summary = aggregate(logs, window, medication_ids={1})

        assert summary.total == 1
        assert summary.rate == 1.0

    def test_window_recorded(self, test_day):
        window = DateWindow.for_day(test_day)
        summary = aggregate([], window)
        assert summary.window_start == window.start
        assert summary.window_end == window.end

    def test_rate_percent(self, test_day):
        window = DateWindow.for_day(test_day)
        logs = [_log(1, datetime.combine(test_day, time(h, 0)), LogStatus.TAKEN) for h in (8, 12)]
        logs.append(_log(1, datetime.combine(test_day, time(20, 0))))
        assert aggregate(logs, window).rate_percent == 66


# =============================================================================
# Test Service Methods
# =============================================================================

class TestLogActions:
    """Tests for recording taken/skipped through the service"""

    @pytest.mark.asyncio
    async def test_log_taken_persists(self, adherence_service, db_session, test_medication, morning):
        log = add_log(db_session, test_medication.id, morning)
        now = morning + timedelta(minutes=5)

        await adherence_service.log_taken(log.id, now=now, db=db_session)

        db_session.expire_all()
        saved = db_session.query(MedicationLog).filter(MedicationLog.id == log.id).first()
        assert saved.status == LogStatus.TAKEN
        assert saved.action_time == now

    @pytest.mark.asyncio
    async def test_log_skipped_persists(self, adherence_service, db_session, test_medication, morning):
        log = add_log(db_session, test_medication.id, morning)

        result = await adherence_service.log_skipped(log.id, now=morning, db=db_session)

        assert result.status == LogStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_second_action_rejected(self, adherence_service, db_session, test_medication, morning):
        log = add_log(db_session, test_medication.id, morning)
        await adherence_service.log_taken(log.id, now=morning, db=db_session)

        with pytest.raises(InvalidTransition):
            await adherence_service.log_skipped(log.id, now=morning + timedelta(hours=1), db=db_session)

        db_session.expire_all()
        assert db_session.get(MedicationLog, log.id).status == LogStatus.TAKEN

    @pytest.mark.asyncio
    async def test_missing_log(self, adherence_service, db_session):
        with pytest.raises(ValueError):
            await adherence_service.log_taken(12345, db=db_session)

    @pytest.mark.asyncio
    async def test_uses_context_session_when_none_given(self, adherence_service, db_session, test_medication, morning):
        log = add_log(db_session, test_medication.id, morning)

        with patch("services.adherence_service.get_db_context") as mock_ctx:
            mock_ctx.return_value.__enter__ = MagicMock(return_value=db_session)
            mock_ctx.return_value.__exit__ = MagicMock(return_value=False)

            await adherence_service.log_taken(log.id, now=morning)

        mock_ctx.assert_called_once()
        assert db_session.get(MedicationLog, log.id).status == LogStatus.TAKEN


class TestSummaries:
    """Tests for today snapshot, report and history"""

    @pytest.mark.asyncio
    async def test_taken_at_0805_gives_full_rate(self, adherence_service, daily_log_service, db_session, test_day):
        """Lisinopril at 08:00, taken at 08:05"""
        add_medication(db_session, name="Lisinopril", schedule_times=["08:00"])
        await daily_log_service.create_day_logs(test_day, db=db_session)
        log = db_session.query(MedicationLog).one()

        await adherence_service.log_taken(log.id, now=datetime.combine(test_day, time(8, 5)), db=db_session)
        summary = await adherence_service.get_today_summary(test_day, db=db_session)

        assert (summary.total, summary.taken, summary.skipped, summary.rate) == (1, 1, 0, 1.0)

    @pytest.mark.asyncio
    async def test_today_summary_excludes_orphans(self, adherence_service, db_session, test_medication, morning):
        add_log(db_session, test_medication.id, morning, LogStatus.TAKEN, morning)
        add_log(db_session, 4242, morning)

        summary = await adherence_service.get_today_summary(morning.date(), db=db_session)

        assert summary.total == 1

    @pytest.mark.asyncio
    async def test_today_summary_empty_day(self, adherence_service, db_session, test_day):
        summary = await adherence_service.get_today_summary(test_day, db=db_session)
        assert summary.total == 0
        assert summary.rate == 0.0

    @pytest.mark.asyncio
    async def test_snapshot_next_dose(self, adherence_service, db_session, twice_daily_medication, test_day):
        morning_log = add_log(db_session, twice_daily_medication.id, datetime.combine(test_day, time(8, 0)))
        add_log(db_session, twice_daily_medication.id, datetime.combine(test_day, time(20, 0)))
        await adherence_service.log_taken(
            morning_log.id, now=datetime.combine(test_day, time(8, 10)), db=db_session
        )

        snapshot = await adherence_service.get_today_snapshot(
            now=datetime.combine(test_day, time(12, 0)), db=db_session
        )

        assert snapshot.summary.taken == 1
        assert snapshot.summary.pending_count == 1
        assert snapshot.next_dose.medication_name == "Metformin"
        assert snapshot.next_dose.scheduled_time == datetime.combine(test_day, time(20, 0))

    @pytest.mark.asyncio
    async def test_snapshot_all_done(self, adherence_service, db_session, test_medication, morning):
        add_log(db_session, test_medication.id, morning, LogStatus.SKIPPED, morning)

        snapshot = await adherence_service.get_today_snapshot(now=morning, db=db_session)

        assert snapshot.next_dose is None

    @pytest.mark.asyncio
    async def test_report_window_and_breakdown(self, adherence_service, db_session, test_medication,
                                               twice_daily_medication, inactive_medication, test_day):
        for offset in range(10):
            day = test_day - timedelta(days=offset)
            status = LogStatus.TAKEN if offset % 2 == 0 else LogStatus.SKIPPED
            add_log(db_session, test_medication.id, datetime.combine(day, time(8, 0)), status, datetime.combine(day, time(8, 1)))
        add_log(db_session, twice_daily_medication.id, datetime.combine(test_day, time(8, 0)))

        report = await adherence_service.get_report_summary(days=7, today=test_day, db=db_session)

        assert report.days == 7
        assert report.overall.total == 8
        assert report.overall.taken == 4
        assert report.overall.skipped == 3
        assert report.overall.pending_count == 1
        names = [m.name for m in report.medications]
        assert names == ["Lisinopril", "Metformin"]
        lisinopril = report.medications[0]
        assert lisinopril.summary.total == 7
        assert lisinopril.schedule_times == ["08:00"]

    @pytest.mark.asyncio
    async def test_report_rejects_zero_days(self, adherence_service, db_session, test_day):
        with pytest.raises(ValueError):
            await adherence_service.get_report_summary(days=0, today=test_day, db=db_session)

    @pytest.mark.asyncio
    async def test_report_defaults_to_configured_days(self, adherence_service, db_session, test_day):
        report = await adherence_service.get_report_summary(today=test_day, db=db_session)
        assert report.days == settings.DEFAULT_REPORT_DAYS

    @pytest.mark.asyncio
    async def test_report_keeps_inactive_medication_with_history(self, adherence_service, db_session,
                                                                 inactive_medication, test_day):
        add_log(db_session, inactive_medication.id, datetime.combine(test_day, time(21, 0)), LogStatus.TAKEN,
                datetime.combine(test_day, time(21, 5)))

        report = await adherence_service.get_report_summary(days=30, today=test_day, db=db_session)

        assert [m.name for m in report.medications] == ["Atorvastatin"]
        assert report.overall.rate == 1.0

    @pytest.mark.asyncio
    async def test_history_most_recent_first(self, adherence_service, db_session, test_medication, test_day):
        for offset in (2, 0, 1):
            add_log(db_session, test_medication.id, datetime.combine(test_day - timedelta(days=offset), time(8, 0)))

        history = await adherence_service.get_medication_history(test_medication.id, db=db_session)

        assert [log.scheduled_time.date() for log in history] == [
            test_day, test_day - timedelta(days=1), test_day - timedelta(days=2)
        ]

    @pytest.mark.asyncio
    async def test_history_limit(self, adherence_service, db_session, test_medication, test_day):
        for offset in range(5):
            add_log(db_session, test_medication.id, datetime.combine(test_day - timedelta(days=offset), time(8, 0)))

        history = await adherence_service.get_medication_history(test_medication.id, limit=2, db=db_session)

        assert len(history) == 2

    @pytest.mark.asyncio
    async def test_day_logs_sorted(self, adherence_service, db_session, test_medication, twice_daily_medication, test_day):
        add_log(db_session, twice_daily_medication.id, datetime.combine(test_day, time(20, 0)))
        add_log(db_session, test_medication.id, datetime.combine(test_day, time(8, 0)))

        logs = await adherence_service.get_day_logs(test_day, db=db_session)

        assert [log.scheduled_time.hour for log in logs] == [8, 20]

    @pytest.mark.asyncio
    async def test_logs_serialize(self, adherence_service, db_session, test_medication, morning):
        log = add_log(db_session, test_medication.id, morning)
        await adherence_service.log_taken(log.id, now=morning, db=db_session)

        logs = await adherence_service.get_day_logs(morning.date(), db=db_session)
        payload = MedicationLogResponse.model_validate(logs[0]).model_dump(mode="json")

        assert payload["status"] == "taken"
        assert payload["medication_id"] == test_medication.id
