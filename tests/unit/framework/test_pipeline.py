# pylint: disable=missing-docstring
# pylint: disable=attribute-defined-outside-init
import logging
from copy import deepcopy
from pathlib import Path

import pytest

from flowprep.abc.exceptions import ContractViolation
from flowprep.abc.stream import StreamStateType
from flowprep.framework.pipeline import Pipeline
from flowprep.runtime.scheduler import Scheduler, VirtualClock
from flowprep.util.configuration import Configuration

CONFIG = {
    "version": "1",
    "source": {"records": {"type": "dummy_input", "chunks": [{"a": 1}, {"b": "two"}]}},
    "transforms": [{"encoder": {"type": "jsonl_encoder"}}],
    "sink": {"lines": {"type": "dummy_output"}},
}


class TestPipeline:
    def setup_method(self):
        self.configuration = Configuration.from_dict(deepcopy(CONFIG))
        self.scheduler = Scheduler("test", clock=VirtualClock())
        self.pipeline = Pipeline(self.configuration, self.scheduler, name="test pipeline")

    def test_builds_streams_in_flow_order(self):
        assert [stream.name for stream in self.pipeline.streams] == [
            "records",
            "encoder",
            "lines",
        ]
        assert all(stream.scheduler is self.scheduler for stream in self.pipeline.streams)

    def test_streams_are_created_once(self):
        assert self.pipeline.source is self.pipeline.source
        assert self.pipeline.sink is self.pipeline.sink

    def test_creates_own_scheduler(self):
        pipeline = Pipeline(self.configuration)
        assert isinstance(pipeline.scheduler, Scheduler)
        assert pipeline.source.scheduler is pipeline.scheduler

    def test_run_until_complete_returns_finished_sink(self):
        sink = self.pipeline.run_until_complete()
        assert sink is self.pipeline.sink
        assert sink.events == [b'{"a":1}\n', b'{"b":"two"}\n']
        assert sink.state is StreamStateType.ENDED

    def test_run_returns_completion_task(self):
        completion = self.pipeline.run()
        assert not completion.done()
        assert self.scheduler.run_until_settled(completion) is self.pipeline.sink

    def test_run_twice_is_a_contract_violation(self):
        self.pipeline.run()
        with pytest.raises(ContractViolation, match="already started"):
            self.pipeline.run()

    def test_run_until_complete_after_run_uses_running_flow(self):
        self.pipeline.run()
        assert self.pipeline.run_until_complete() is self.pipeline.sink

    def test_logs_start_and_completion(self, caplog):
        caplog.set_level(logging.INFO, logger="Pipeline")
        self.pipeline.run_until_complete()
        assert "Started pipeline (test pipeline)" in caplog.text
        streams = "DummyInput (records) -> JsonlEncoder (encoder) -> DummyOutput (lines)"
        assert streams in caplog.text
        assert "completed" in caplog.text

    def test_raises_first_stream_error(self):
        config = deepcopy(CONFIG)
        config["source"]["records"]["chunks"] = [{"a": 1}, KeyError]
        pipeline = Pipeline(Configuration.from_dict(config), self.scheduler)
        with pytest.raises(KeyError):
            pipeline.run_until_complete()
        assert all(stream.terminated for stream in pipeline.streams)

    def test_shut_down_shuts_down_every_stream(self):
        self.pipeline.run_until_complete()
        self.pipeline.shut_down()
        assert self.pipeline.sink.shut_down_called_count == 1
        assert self.pipeline.source.state is StreamStateType.ENDED

    def test_shut_down_destroys_running_streams(self):
        self.pipeline.run()
        self.pipeline.shut_down()
        assert all(stream.terminated for stream in self.pipeline.streams)

    def test_independent_pipelines_do_not_share_state(self):
        first = Pipeline(self.configuration, name="first")
        second = Pipeline(self.configuration, name="second")
        first.run_until_complete()
        assert second.sink.events == []
        second.run_until_complete()
        assert first.sink.events == second.sink.events
        assert first.scheduler is not second.scheduler


class TestPipelineFromFiles:
    def test_copies_jsonl_file(self, tmp_path: Path):
        source = tmp_path / "events.jsonl"
        source.write_text('{"a":1}\n\n{"b":[1,2]}\n', encoding="utf8")
        target = tmp_path / "copy.jsonl"
        config_file = tmp_path / "pipeline.yml"
        config_file.write_text(
            f"""
version: config-1.0
source:
  events:
    type: file_input
    path: {source}
    chunk_size: 4
transforms:
  - lines:
      type: line_splitter
      skip_empty: true
  - records:
      type: jsonl_decoder
sink:
  copy:
    type: jsonl_output
    path: {target}
""",
            encoding="utf8",
        )
        pipeline = Pipeline(Configuration.from_source(str(config_file)))
        pipeline.run_until_complete()
        assert target.read_text(encoding="utf8") == '{"a":1}\n{"b":[1,2]}\n'
        assert pipeline.source._file.closed  # pylint: disable=protected-access
        assert pipeline.sink._file.closed  # pylint: disable=protected-access

    def test_reads_json_document(self, tmp_path: Path):
        document = tmp_path / "document.json"
        document.write_text('[{"id": 1}, {"id": 2}]', encoding="utf8")
        target = tmp_path / "records.jsonl"
        configuration = Configuration.from_dict(
            {
                "source": {"document": {"type": "json_input", "documents_path": str(document)}},
                "sink": {"records": {"type": "jsonl_output", "path": str(target)}},
            }
        )
        Pipeline(configuration).run_until_complete()
        assert target.read_text(encoding="utf8") == '{"id":1}\n{"id":2}\n'
