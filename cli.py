import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from clip_core.config_manager import ConfigManager
from clip_core.errors import ClipCoreError
from clip_core.intelligence.analyst import ContentAnalyst, analysis_summary
from clip_core.intelligence.engine import ClipExtractionEngine
from clip_core.intelligence.models import AnalysisRequest, ContentType, VideoMetadata
from clip_core.intelligence.scoring import calculate_viral_score
from clip_core.pipeline import ClipPipeline
from clip_core.transcription.helpers import simulate_transcription, transcription_cost
from clip_core.transcription.models import TranscriptionJob
from clip_core.utils.logger import setup_logger
from clip_core.utils.text_utils import chunk_segments


def _load_analysis_request(path: Path, duration: float, content_type: str) -> AnalysisRequest:
    """Accepts a plain-text transcript or a TranscriptionJob JSON dump."""
    if path.suffix == ".json":
        job = TranscriptionJob.model_validate_json(path.read_text())
        return AnalysisRequest(
            transcript=job.text,
            segments=chunk_segments(job.segments),
            duration=duration or job.duration,
            content_type=content_type,
        )

    if not duration:
        raise ValueError("--duration is required for plain-text transcripts")
    return AnalysisRequest(transcript=path.read_text(), duration=duration, content_type=content_type)


def _print(data) -> None:
    print(json.dumps(data, indent=2))


def main():
    load_dotenv()

    parser = argparse.ArgumentParser(description="Clip Core CLI")
    parser.add_argument("--config", default="config/settings.yaml", help="Path to settings YAML")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Find viral clips in a transcript file")
    analyze_parser.add_argument("transcript", help="Transcript .txt, or a transcription job .json")
    analyze_parser.add_argument("--duration", type=float, default=0.0, help="Source duration in seconds")
    analyze_parser.add_argument("--content-type", choices=[c.value for c in ContentType], default="video")

    transcribe_parser = subparsers.add_parser("transcribe", help="Transcribe an audio URL, then analyze it")
    transcribe_parser.add_argument("audio_url")
    transcribe_parser.add_argument("--language", help="Language code (default from settings)")
    transcribe_parser.add_argument("--content-type", choices=[c.value for c in ContentType], default="audio")
    transcribe_parser.add_argument(
        "--simulate", type=float, metavar="SECONDS", help="Skip the provider and fake a transcript of this length"
    )
    transcribe_parser.add_argument("--async-mode", action="store_true", help="Dispatch to Celery worker")

    viral_parser = subparsers.add_parser("viral", help="Search-backed viral potential report for a transcript")
    viral_parser.add_argument("transcript", help="Plain-text transcript file")
    viral_parser.add_argument("--title")
    viral_parser.add_argument("--platform")
    viral_parser.add_argument("--summary", action="store_true", help="Print only the headline numbers")

    trending_parser = subparsers.add_parser("trending", help="Current trending topics")
    trending_parser.add_argument("--category")
    trending_parser.add_argument("--region")
    trending_parser.add_argument("--timeframe", choices=["hour", "day", "week", "month"])

    score_parser = subparsers.add_parser("score", help="Heuristic viral score, no network")
    score_parser.add_argument("text")
    score_parser.add_argument("--duration", type=float, required=True)

    args = parser.parse_args()

    if args.command == "score":
        _print({"score": calculate_viral_score(args.text, args.duration)})
        return

    try:
        config = ConfigManager(args.config)
    except Exception as e:
        print(f"Config Error: {e}")
        sys.exit(1)

    setup_logger(log_dir=config.paths.log_dir)

    if args.command == "analyze":
        try:
            request = _load_analysis_request(Path(args.transcript), args.duration, args.content_type)
        except (OSError, ValueError) as e:
            print(f"Error: {e}")
            sys.exit(1)

        result = ClipExtractionEngine(config).analyze(request)
        _print(result.model_dump(mode="json", by_alias=True))
        sys.exit(0 if result.success else 2)

    if args.command in ("viral", "trending"):
        engine = ClipExtractionEngine(config)
        if not engine.client:
            print("Error: completion API key not configured")
            sys.exit(1)
        analyst = ContentAnalyst(engine.client)
        try:
            if args.command == "trending":
                topics = analyst.get_trending_topics(args.category, args.region, args.timeframe)
                _print([t.model_dump(mode="json") for t in topics])
                return
            metadata = VideoMetadata(title=args.title, platform=args.platform)
            analysis = analyst.analyze_viral_potential(Path(args.transcript).read_text(), metadata)
        except ClipCoreError as e:
            print(f"Analysis Error [{e.code}]: {e.message}")
            sys.exit(2)
        _print(analysis_summary(analysis) if args.summary else analysis.model_dump(mode="json"))
        return

    if args.command == "transcribe":
        if args.async_mode:
            from clip_core.worker import process_audio_task

            task = process_audio_task.delay(args.audio_url, content_type=args.content_type, language=args.language)
            print(f"Task dispatched: {task.id}")
            return

        if args.simulate:
            job = simulate_transcription(args.audio_url, args.simulate)
            with ClipPipeline(config) as pipeline:
                result = pipeline.analyze_job(job, args.content_type)
        else:
            try:
                with ClipPipeline(config) as pipeline:
                    result = pipeline.run(args.audio_url, args.content_type, language=args.language)
            except ClipCoreError as e:
                print(f"Transcription Error [{e.code}]: {e.message}")
                sys.exit(2)

        output = result.model_dump(mode="json", by_alias=True)
        output["estimated_cost"] = transcription_cost(result.job.duration)
        _print(output)


if __name__ == "__main__":
    main()
