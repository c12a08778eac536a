"""Tests del orquestador de ingesta."""

import asyncio

import pytest

from immoradar.exceptions import RunAlreadyInProgressError
from immoradar.ingestion.orchestrator import IngestionOrchestrator, RunState
from immoradar.models import CandidateRecord
from immoradar.sources import SourceEntry

from tests.fakes import ExplodingAdapter, FakeSupabaseClient, StaticAdapter


def _candidate(title, url=None, district=None, developer=None):
    return CandidateRecord(
        title=title,
        source_url=url,
        district=district,
        developer_name=developer,
        source_name="static",
    )


def _orchestrator(plan, client, pipeline_name, settings):
    return IngestionOrchestrator(
        plan=plan,
        client=client,
        delay_seconds=0,
        pipeline_name=pipeline_name,
        settings=settings,
    )


class TestIngestionRun:
    """Corridas completas contra el catálogo en memoria."""

    @pytest.mark.asyncio
    async def test_new_project_persisted_with_district_coordinates(
        self, fake_client, pipeline_name, settings, jnane_candidate
    ):
        adapter = StaticAdapter({"q1": [jnane_candidate]}, settings=settings)
        orchestrator = _orchestrator([SourceEntry(adapter, "q1")], fake_client, pipeline_name, settings)

        summary = await orchestrator.run()

        assert summary.success is True
        assert summary.total_found == 1
        assert summary.new_properties_added == 1
        assert orchestrator.state == RunState.COMPLETED

        rows = fake_client.rows("properties")
        assert len(rows) == 1
        assert (rows[0]["latitude"], rows[0]["longitude"]) == (33.9598, -6.8672)
        assert rows[0]["city"] == "Rabat"
        assert rows[0]["currency"] == "MAD"
        assert rows[0]["construction_status"] == "planning"

        logs = fake_client.rows("search_logs")
        assert len(logs) == 1
        assert logs[0]["status"] == "success"
        assert logs[0]["results_found"] == 1
        assert logs[0]["new_properties_added"] == 1
        assert logs[0]["search_query"] == "q1"

    @pytest.mark.asyncio
    async def test_second_run_is_idempotent(self, fake_client, pipeline_name, settings, jnane_candidate):
        plan = [SourceEntry(StaticAdapter({"q1": [jnane_candidate]}, settings=settings), "q1")]

        await _orchestrator(plan, fake_client, pipeline_name, settings).run()
        summary = await _orchestrator(plan, fake_client, pipeline_name, settings).run()

        assert summary.success is True
        assert summary.total_found == 1
        assert summary.new_properties_added == 0
        assert len(fake_client.rows("properties")) == 1
        assert len(fake_client.rows("search_logs")) == 2

    @pytest.mark.asyncio
    async def test_duplicates_within_run_counted_once(self, fake_client, pipeline_name, settings):
        adapter = StaticAdapter(
            {
                "q1": [_candidate("Les Jardins", url="https://x/1")],
                "q2": [_candidate("Les Jardins (bis)", url="https://x/1")],
            },
            settings=settings,
        )
        plan = [SourceEntry(adapter, "q1"), SourceEntry(adapter, "q2")]

        summary = await _orchestrator(plan, fake_client, pipeline_name, settings).run()

        assert summary.total_found == 2
        assert summary.new_properties_added == 1
        assert fake_client.rows("search_logs")[0]["search_query"] == "q1, q2"

    @pytest.mark.asyncio
    async def test_developer_created_once_across_candidates(self, fake_client, pipeline_name, settings):
        adapter = StaticAdapter(
            {
                "q1": [
                    _candidate("Projet A", url="https://x/a", developer="Alliances"),
                    _candidate("Projet B", url="https://x/b", developer="ALLIANCES"),
                ]
            },
            settings=settings,
        )

        await _orchestrator([SourceEntry(adapter, "q1")], fake_client, pipeline_name, settings).run()

        developers = fake_client.rows("developers")
        assert len(developers) == 1
        properties = fake_client.rows("properties")
        assert {row["developer_id"] for row in properties} == {developers[0]["id"]}

    @pytest.mark.asyncio
    async def test_no_new_projects_message(self, fake_client, pipeline_name, settings):
        adapter = StaticAdapter({"q1": []}, settings=settings)

        summary = await _orchestrator([SourceEntry(adapter, "q1")], fake_client, pipeline_name, settings).run()

        assert summary.success is True
        assert summary.new_properties_added == 0
        assert summary.message == "Búsqueda completada sin proyectos nuevos"


class TestFailureIsolation:
    """Las fallas de una entrada o candidato no cortan la corrida."""

    @pytest.mark.asyncio
    async def test_failing_fetch_does_not_stop_run(self, fake_client, pipeline_name, settings):
        """La entrada 2 de 3 falla; 1 y 3 se cuentan igual."""
        adapter = StaticAdapter(
            {
                "q1": [_candidate("Projet 1", url="https://x/1")],
                "q2": ConnectionError("proveedor caído"),
                "q3": [_candidate("Projet 3", url="https://x/3")],
            },
            settings=settings,
        )
        plan = [SourceEntry(adapter, q) for q in ("q1", "q2", "q3")]

        summary = await _orchestrator(plan, fake_client, pipeline_name, settings).run()

        assert summary.success is True
        assert summary.total_found == 2
        assert summary.new_properties_added == 2
        assert adapter.calls == ["q1", "q2", "q3"]

    @pytest.mark.asyncio
    async def test_raising_adapter_does_not_stop_run(self, fake_client, pipeline_name, settings):
        """Si el propio scrape lanza, lo ya visto se conserva y se sigue."""
        exploding = ExplodingAdapter(before=[_candidate("Projet 2", url="https://x/2")], settings=settings)
        static = StaticAdapter(
            {
                "q1": [_candidate("Projet 1", url="https://x/1")],
                "q3": [_candidate("Projet 3", url="https://x/3")],
            },
            settings=settings,
        )
        plan = [SourceEntry(static, "q1"), SourceEntry(exploding, "q2"), SourceEntry(static, "q3")]

        summary = await _orchestrator(plan, fake_client, pipeline_name, settings).run()

        assert summary.success is True
        assert summary.total_found == 3
        assert summary.new_properties_added == 3

    @pytest.mark.asyncio
    async def test_candidate_write_failure_is_skipped(self, pipeline_name, settings):
        client = FakeSupabaseClient(fail_inserts={"properties": 1})
        adapter = StaticAdapter(
            {"q1": [_candidate("Projet 1", url="https://x/1"), _candidate("Projet 2", url="https://x/2")]},
            settings=settings,
        )

        summary = await _orchestrator([SourceEntry(adapter, "q1")], client, pipeline_name, settings).run()

        assert summary.success is True
        assert summary.total_found == 2
        assert summary.new_properties_added == 1
        assert [row["title"] for row in client.rows("properties")] == ["Projet 2"]

    @pytest.mark.asyncio
    async def test_run_log_failure_marks_run_failed(self, pipeline_name, settings):
        """Si no se puede escribir el log de éxito se registra un log de error."""
        client = FakeSupabaseClient(fail_inserts={"search_logs": 1})
        adapter = StaticAdapter({"q1": [_candidate("Projet 1", url="https://x/1")]}, settings=settings)
        orchestrator = _orchestrator([SourceEntry(adapter, "q1")], client, pipeline_name, settings)

        summary = await orchestrator.run()

        assert summary.success is False
        assert summary.error == "insert into search_logs failed"
        assert orchestrator.state == RunState.FAILED

        logs = client.rows("search_logs")
        assert len(logs) == 1
        assert logs[0]["status"] == "error"
        assert logs[0]["results_found"] == 0
        assert logs[0]["error_message"] == "insert into search_logs failed"

    @pytest.mark.asyncio
    async def test_unloggable_failure_still_returns_summary(self, pipeline_name, settings):
        client = FakeSupabaseClient(fail_inserts={"search_logs": -1})
        orchestrator = _orchestrator([], client, pipeline_name, settings)

        summary = await orchestrator.run()

        assert summary.success is False
        assert client.rows("search_logs") == []


class TestRunScheduling:
    """Pausas entre entradas y exclusión de corridas superpuestas."""

    @pytest.mark.asyncio
    async def test_delay_between_entries_only(self, fake_client, pipeline_name, settings, monkeypatch):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr("immoradar.ingestion.orchestrator.asyncio.sleep", fake_sleep)
        adapter = StaticAdapter({}, settings=settings)
        plan = [SourceEntry(adapter, q) for q in ("q1", "q2", "q3")]
        orchestrator = IngestionOrchestrator(
            plan=plan,
            client=fake_client,
            delay_seconds=2.5,
            pipeline_name=pipeline_name,
            settings=settings,
        )

        await orchestrator.run()

        assert sleeps == [2.5, 2.5]

    @pytest.mark.asyncio
    async def test_overlapping_run_rejected(self, fake_client, pipeline_name, settings):
        release = asyncio.Event()
        started = asyncio.Event()

        class BlockingAdapter(StaticAdapter):
            async def fetch_raw(self, descriptor):
                started.set()
                await release.wait()
                return []

        plan = [SourceEntry(BlockingAdapter({}, settings=settings), "q1")]
        first = asyncio.create_task(_orchestrator(plan, fake_client, pipeline_name, settings).run())
        await started.wait()

        with pytest.raises(RunAlreadyInProgressError):
            await _orchestrator(plan, fake_client, pipeline_name, settings).run()

        release.set()
        summary = await first
        assert summary.success is True
        assert len(fake_client.rows("search_logs")) == 1
