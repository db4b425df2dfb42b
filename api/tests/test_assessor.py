import asyncio
from datetime import date
from unittest.mock import AsyncMock

import httpx
import pytest

from api.core.geo import Coordinate, compute_bounding_square
from api.risk.assessor import RiskAssessor, UserSettings, build_assessment, run_assessment
from api.risk.classify import RiskLevel
from api.risk.notify import HIGH_RISK_TITLE, LAST_HIGH_RISK_NOTIFICATION_KEY
from sources.models import CrimeSource, CrimeSourceSelection, FetchResult

LONDON = Coordinate(51.5074, -0.1278)
NOW = 1_760_000_000_000
TODAY = date(2026, 10, 19)


def test_end_to_end_medium_risk_never_notifies(met_record, report_record):
    square = compute_bounding_square(LONDON, 1500)
    results = [
        FetchResult(CrimeSource.MET, [met_record(i) for i in range(120)]),
        FetchResult(CrimeSource.REPORT, [report_record(i) for i in range(5)]),
    ]

    assessment = build_assessment(
        LONDON,
        square,
        UserSettings(notifications_enabled=True),
        results,
        now_ms=NOW,
        last_notified=None,
    )

    assert len(assessment.records) == 125
    assert assessment.risk_level is RiskLevel.MEDIUM
    assert assessment.notification.should_notify is False
    assert assessment.failed_sources == []


def test_build_assessment_filters_display_but_not_risk(met_record):
    square = compute_bounding_square(LONDON, 1500)
    raws = [met_record(i, category="burglary") for i in range(200)] + [met_record(999, category="drugs")] * 60
    assessment = build_assessment(
        LONDON,
        square,
        UserSettings(),
        [FetchResult(CrimeSource.MET, raws)],
        now_ms=NOW,
        last_notified=None,
        category="drugs",
    )

    assert assessment.risk_level is RiskLevel.HIGH
    assert len(assessment.shown_records) == 60
    payload = assessment.to_dict()
    assert payload["record_count"] == 260
    assert payload["shown_count"] == 60
    assert payload["records"][0]["pin_colour"] == "goldenrod"
    assert payload["records"][0]["marker_description"] == "On or near Whitehall"


def test_run_assessment_queries_both_sources_and_keeps_met_first(
    mock_client, kv_store, notifier, source_settings, met_record, report_record
):
    client = mock_client({source_settings.met_api_url: [met_record(1)], source_settings.reports_nearby_url: [report_record(2)]})

    assessment = asyncio.run(
        run_assessment(
            LONDON,
            UserSettings(),
            client=client,
            store=kv_store,
            notifier=notifier,
            today=TODAY,
            clock=lambda: NOW,
            source_settings=source_settings,
        )
    )

    assert [r.source for r in assessment.records] == [CrimeSource.MET, CrimeSource.REPORT]
    urls = [call.args[0] for call in client.get.call_args_list]
    assert sorted(urls) == sorted([source_settings.met_api_url, source_settings.reports_nearby_url])
    met_call = next(c for c in client.get.call_args_list if c.args[0] == source_settings.met_api_url)
    assert met_call.kwargs["params"]["date"] == "2026-08"
    report_call = next(c for c in client.get.call_args_list if c.args[0] != source_settings.met_api_url)
    assert report_call.kwargs["params"] == {"lat": 51.5074, "lng": -0.1278, "size": 1500.0}


def test_run_assessment_respects_source_selection(mock_client, kv_store, notifier, source_settings, report_record):
    client = mock_client({source_settings.reports_nearby_url: [report_record(1)]})

    assessment = asyncio.run(
        run_assessment(
            LONDON,
            UserSettings(crime_source=CrimeSourceSelection.REPORT),
            client=client,
            store=kv_store,
            notifier=notifier,
            source_settings=source_settings,
        )
    )

    assert client.get.call_count == 1
    assert list(assessment.sources) == [CrimeSource.REPORT]


def test_failed_source_degrades_to_other_source(mock_client, kv_store, notifier, source_settings, report_record):
    client = mock_client(
        {
            source_settings.met_api_url: httpx.ConnectError("connection refused"),
            source_settings.reports_nearby_url: [report_record(i) for i in range(3)],
        }
    )

    assessment = asyncio.run(
        run_assessment(
            LONDON,
            UserSettings(),
            client=client,
            store=kv_store,
            notifier=notifier,
            today=TODAY,
            source_settings=source_settings,
        )
    )

    assert len(assessment.records) == 3
    assert assessment.failed_sources == [CrimeSource.MET]
    assert assessment.to_dict()["sources"]["met"]["status"] == "failed"
    assert assessment.risk_level is RiskLevel.LOW


def test_high_risk_notifies_once_per_cooldown(mock_client, kv_store, notifier, source_settings, met_record):
    client = mock_client({source_settings.met_api_url: [met_record(i) for i in range(251)], source_settings.reports_nearby_url: []})
    clock = iter([NOW, NOW + 60_000, NOW + 6 * 60_000])

    def run():
        return asyncio.run(
            run_assessment(
                LONDON,
                UserSettings(),
                client=client,
                store=kv_store,
                notifier=notifier,
                today=TODAY,
                clock=lambda: next(clock),
                source_settings=source_settings,
            )
        )

    first, second, third = run(), run(), run()

    assert (first.notified, second.notified, third.notified) == (True, False, True)
    assert len(notifier.sent) == 2
    assert notifier.sent[0][0] == HIGH_RISK_TITLE
    assert kv_store.get(LAST_HIGH_RISK_NOTIFICATION_KEY) == str(NOW + 6 * 60_000)


def test_notifications_disabled_leaves_store_untouched(mock_client, kv_store, notifier, source_settings, met_record):
    client = mock_client({source_settings.met_api_url: [met_record(i) for i in range(300)], source_settings.reports_nearby_url: []})

    assessment = asyncio.run(
        run_assessment(
            LONDON,
            UserSettings(notifications_enabled=False),
            client=client,
            store=kv_store,
            notifier=notifier,
            today=TODAY,
            source_settings=source_settings,
        )
    )

    assert assessment.risk_level is RiskLevel.HIGH
    assert notifier.sent == []
    assert kv_store.get(LAST_HIGH_RISK_NOTIFICATION_KEY) is None


def test_superseded_round_is_discarded(kv_store, notifier, source_settings, report_record, json_response):
    """A slow first round resolving after a newer round must not publish or alert."""

    async def scenario():
        release_first = asyncio.Event()

        async def _get(url, params=None, timeout=None):
            if params["lat"] == 51.0:
                await release_first.wait()
                return json_response(url, [report_record(i) for i in range(300)])
            return json_response(url, [report_record(0)])

        client = AsyncMock()
        client.get.side_effect = _get
        assessor = RiskAssessor(
            client=client,
            store=kv_store,
            notifier=notifier,
            clock=lambda: NOW,
            source_settings=source_settings,
        )
        settings = UserSettings(crime_source=CrimeSourceSelection.REPORT)

        first = asyncio.create_task(assessor.assess(Coordinate(51.0, 0.0), settings))
        await asyncio.sleep(0)
        second = await assessor.assess(Coordinate(52.0, 0.0), settings)
        release_first.set()
        stale = await first
        return assessor, stale, second

    assessor, stale, second = asyncio.run(scenario())

    assert stale is None
    assert second.sequence == 2
    assert assessor.latest_sequence == 2
    assert second.risk_level is RiskLevel.LOW
    assert notifier.sent == []
    assert kv_store.get(LAST_HIGH_RISK_NOTIFICATION_KEY) is None


def test_assessor_sequences_increase(mock_client, kv_store, notifier, source_settings):
    client = mock_client({source_settings.met_api_url: [], source_settings.reports_nearby_url: []})
    assessor = RiskAssessor(client=client, store=kv_store, notifier=notifier, source_settings=source_settings)

    async def two_rounds():
        a = await assessor.assess(LONDON, UserSettings(), today=TODAY)
        b = await assessor.assess(LONDON, UserSettings(), today=TODAY)
        return a, b

    a, b = asyncio.run(two_rounds())
    assert (a.sequence, b.sequence) == (1, 2)
    assert a.records == [] and a.failed_sources == []


def test_invalid_side_length_raises(mock_client, kv_store, notifier):
    with pytest.raises(ValueError):
        asyncio.run(
            run_assessment(
                LONDON,
                UserSettings(),
                client=mock_client({}),
                store=kv_store,
                notifier=notifier,
                side_meters=0,
            )
        )
