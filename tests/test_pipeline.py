import pytest

from clip_core.config_manager import TranscriptionConfig
from clip_core.errors import TranscriptionTimeout
from clip_core.intelligence.models import AnalysisResponse, ContentType
from clip_core.pipeline import ClipPipeline
from clip_core.transcription.models import JobStatus, TranscriptionJob, TranscriptSegment


@pytest.fixture
def mock_config_manager(mocker):
    mock = mocker.Mock()
    mock.transcription = TranscriptionConfig(api_key="aai-test", max_attempts=7, interval_ms=250)
    return mock


@pytest.fixture
def mock_components(mocker):
    transcriber = mocker.Mock()
    engine = mocker.Mock()
    engine.analyze_transcript.return_value = AnalysisResponse(success=True, clips=[])
    return transcriber, engine


def words(*items):
    return [TranscriptSegment(text=text, start_time=start, end_time=end) for text, start, end in items]


def test_pipeline_run_flow(mock_config_manager, mock_components):
    transcriber, engine = mock_components
    transcriber.submit.return_value = "job-1"
    transcriber.poll_until_complete.return_value = TranscriptionJob(
        id="job-1",
        status=JobStatus.COMPLETED,
        text="Hello there.",
        segments=words(("Hello", 0.0, 0.4), ("there.", 0.5, 1.0)),
        duration=42.0,
    )

    pipeline = ClipPipeline(mock_config_manager, transcription_client=transcriber, engine=engine)
    result = pipeline.run("https://cdn.example.com/a.mp3", language="de")

    transcriber.submit.assert_called_once_with("https://cdn.example.com/a.mp3", language="de")
    poll_kwargs = transcriber.poll_until_complete.call_args.kwargs
    assert poll_kwargs["max_attempts"] == 7
    assert poll_kwargs["interval_ms"] == 250

    transcript, segments, duration, content_type = engine.analyze_transcript.call_args.args
    assert transcript == "Hello there."
    assert [s.text for s in segments] == ["Hello there."]
    assert duration == 42.0
    assert content_type is ContentType.AUDIO

    assert result.job.id == "job-1"
    assert result.analysis.success


def test_duration_falls_back_to_last_segment(mock_config_manager, mock_components):
    transcriber, engine = mock_components
    job = TranscriptionJob(
        id="job-2", status=JobStatus.COMPLETED, text="a b", segments=words(("a", 0, 1), ("b", 1, 73.5))
    )

    ClipPipeline(mock_config_manager, transcription_client=transcriber, engine=engine).analyze_job(job)

    assert engine.analyze_transcript.call_args.args[2] == 73.5


def test_analysis_failure_is_reported_not_raised(mock_config_manager, mock_components):
    transcriber, engine = mock_components
    engine.analyze_transcript.return_value = AnalysisResponse(
        success=False, error="Empty transcript provided", error_code="EMPTY_TRANSCRIPT"
    )
    job = TranscriptionJob(id="job-3", status=JobStatus.COMPLETED)

    result = ClipPipeline(mock_config_manager, transcription_client=transcriber, engine=engine).analyze_job(job)

    assert not result.analysis.success
    assert result.analysis.error_code == "EMPTY_TRANSCRIPT"


def test_transcription_errors_propagate(mock_config_manager, mock_components):
    transcriber, engine = mock_components
    transcriber.submit.return_value = "job-4"
    transcriber.poll_until_complete.side_effect = TranscriptionTimeout(7)

    pipeline = ClipPipeline(mock_config_manager, transcription_client=transcriber, engine=engine)
    with pytest.raises(TranscriptionTimeout):
        pipeline.run("https://cdn.example.com/a.mp3")
    engine.analyze_transcript.assert_not_called()


def test_pipeline_closes_transcriber_it_created(mocker, mock_config_manager, mock_components):
    _, engine = mock_components
    from_config = mocker.patch("clip_core.pipeline.TranscriptionJobClient.from_config")

    with ClipPipeline(mock_config_manager, engine=engine) as pipeline:
        assert pipeline.transcriber is from_config.return_value

    from_config.return_value.close.assert_called_once_with()


def test_pipeline_leaves_injected_transcriber_open(mock_config_manager, mock_components):
    transcriber, engine = mock_components

    with ClipPipeline(mock_config_manager, transcription_client=transcriber, engine=engine):
        pass

    transcriber.close.assert_not_called()
