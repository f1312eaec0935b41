"""Command-line client: send one message, optionally to two model settings side by side."""
from __future__ import annotations
import argparse
import logging
from concurrent.futures import ThreadPoolExecutor

from gptcompare.common.config import Settings
from gptcompare.common.logging_setup import setup_logging
from gptcompare.common.schema import GenerationResult
from gptcompare.serve.openai_service import OpenAIService

LOGGER = logging.getLogger("gptcompare.cli")


def _report(label: str, result: GenerationResult) -> None:
    LOGGER.info(
        "[%s] Latency: %sms | in=%s out=%s total=%s | truncated=%s",
        label,
        result.latency_ms,
        result.input_tokens,
        result.output_tokens,
        result.total_tokens,
        result.truncated,
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Send a message to the OpenAI Responses API")
    ap.add_argument("--text", required=True, help="User message")
    ap.add_argument("--cfg", default=None, help="YAML config path")
    ap.add_argument("--model", default=None)
    ap.add_argument("--temperature", type=float, default=None)
    ap.add_argument("--max-output-tokens", type=int, default=None)
    ap.add_argument("--compare-model", default=None, help="Second model to compare against")
    ap.add_argument("--compare-temperature", type=float, default=None)
    ap.add_argument("--compare-max-output-tokens", type=int, default=None)
    return ap


def run(args: argparse.Namespace, service: OpenAIService) -> list[tuple[str, GenerationResult]]:
    """Issue one call, or two independent concurrent calls in compare mode."""
    jobs = [("A", (args.model, args.temperature, args.max_output_tokens))]
    if args.compare_model:
        jobs.append(
            ("B", (args.compare_model, args.compare_temperature, args.compare_max_output_tokens))
        )
    with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
        futures = [
            (label, pool.submit(service.generate_reply, args.text, *params))
            for label, params in jobs
        ]
        return [(label, future.result()) for label, future in futures]


def main(argv: list[str] | None = None) -> None:
    ap = build_parser()
    args = ap.parse_args(argv)
    if not args.text.strip():
        ap.error("--text must not be blank")

    settings = Settings.load(args.cfg)
    setup_logging(settings.log_level)
    service = OpenAIService.from_settings(settings)

    results = run(args, service)
    for label, result in results:
        _report(label, result)
        if len(results) > 1:
            print(f"--- {label} ---")
        print(result.reply)


if __name__ == "__main__":
    main()
