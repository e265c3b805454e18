#!/usr/bin/env python
"""
resume-craft command line entry point.

Usage:
    resume-craft parse resume.tex -o resume.json
    resume-craft reconstruct resume.json -o rebuilt.tex
    resume-craft export resume.json --out-dir output/exports
    resume-craft compile rebuilt.tex -o resume.pdf
    resume-craft optimize resume.json --keywords "Docker,Kubernetes" -o optimized.json
    resume-craft optimize resume.json --job job.txt -o optimized.json
    resume-craft keywords resume.json --job job.txt
"""
from __future__ import annotations

import argparse
import json
import sys
import uuid
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from resume_craft.compile_client import LatexOnlineClient
from resume_craft.config import Settings
from resume_craft.export import export_latex
from resume_craft.keywords import KeywordAnalyzer, analyze_keyword_gap, keywords_in_resume
from resume_craft.latex.reconstruct import ReconstructionError, reconstruct_latex
from resume_craft.logger import get_logger, init_logger
from resume_craft.optimizer import (
    BulletOptimizer,
    OptimizationConfig,
    OptimizationContext,
    apply_optimizations,
    build_optimization_plan,
)
from resume_craft.parsers import parse_file
from resume_craft.schema import Resume
from resume_craft.tracking import UsageTracker

logger = get_logger("cli")


def _load_snapshot(path: str) -> Optional[Resume]:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return Resume.model_validate(data)
    except FileNotFoundError:
        logger.error(f"Snapshot not found: {path}")
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Invalid resume snapshot {path}: {e}")
    return None


def _write_or_print(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        logger.info(f"Wrote {output}")
    else:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")


def cmd_parse(args: argparse.Namespace, settings: Settings) -> int:
    result = parse_file(args.file, max_bytes=settings.max_upload_bytes)
    for warning in result.warnings:
        logger.warning(warning)
    if not result.success:
        logger.error(f"Parse failed: {result.error}")
        return 1
    _write_or_print(json.dumps(result.resume.model_dump(mode="json"), indent=2), args.output)
    return 0


def cmd_reconstruct(args: argparse.Namespace, settings: Settings) -> int:
    resume = _load_snapshot(args.snapshot)
    if resume is None:
        return 1
    try:
        latex = reconstruct_latex(resume)
    except ReconstructionError as e:
        logger.error(str(e))
        return 1
    _write_or_print(latex, args.output)
    return 0


def cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    resume = _load_snapshot(args.snapshot)
    if resume is None:
        return 1
    path = export_latex(resume, args.out_dir)
    print(path)
    return 0


def _read_text(path: str, what: str) -> Optional[str]:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Could not read {what} {path}: {e}")
    return None


def cmd_compile(args: argparse.Namespace, settings: Settings) -> int:
    source = _read_text(args.tex, "LaTeX file")
    if source is None:
        return 1
    client = LatexOnlineClient(settings.compile_url, settings.compile_timeout)
    result = client.smart_compile(source, validate=not args.no_validate)
    if not result["success"]:
        logger.error(f"Compilation failed: {result['error']}")
        for error in result.get("errors") or []:
            logger.error(f"  {error}")
        return 1
    output = Path(args.output or Path(args.tex).with_suffix(".pdf"))
    try:
        output.write_bytes(result["pdf_bytes"])
    except OSError as e:
        logger.error(f"Could not write {output}: {e}")
        return 1
    logger.info(f"Wrote {output}")
    return 0


def cmd_keywords(args: argparse.Namespace, settings: Settings) -> int:
    resume = _load_snapshot(args.snapshot)
    job = _read_text(args.job, "job description")
    if resume is None or job is None:
        return 1
    tracker = UsageTracker.from_settings(settings)
    analyzer = KeywordAnalyzer(tracker, args.session or str(uuid.uuid4()), model=settings.llm_model)
    job_keywords = analyzer.extract_job_keywords(job)
    if not job_keywords:
        logger.error("No keywords could be extracted from the job description")
        return 1
    analysis = analyze_keyword_gap(job_keywords, keywords_in_resume(resume, job_keywords))
    _write_or_print(analysis.model_dump_json(indent=2), args.output)
    return 0


def cmd_optimize(args: argparse.Namespace, settings: Settings) -> int:
    resume = _load_snapshot(args.snapshot)
    if resume is None:
        return 1
    job = ""
    if args.job:
        job = _read_text(args.job, "job description")
        if job is None:
            return 1

    try:
        config = OptimizationConfig(
            mode=args.mode,
            max_concurrent_calls=args.max_concurrent or settings.max_concurrent_calls,
        )
    except ValidationError as e:
        logger.error(f"Invalid optimization settings: {e}")
        return 1

    session_id = args.session or str(uuid.uuid4())
    tracker = UsageTracker.from_settings(settings)

    if args.keywords is not None:
        keywords = [k.strip() for k in args.keywords.split(",") if k.strip()]
    elif job:
        analyzer = KeywordAnalyzer(tracker, session_id, model=settings.llm_model)
        keywords = analyzer.extract_job_keywords(job)
        analysis = analyze_keyword_gap(keywords, keywords_in_resume(resume, keywords))
        logger.info(f"Job keywords: {', '.join(keywords)} | coverage {analysis.coverage}%")
    else:
        logger.error("Give --keywords or a --job description to extract them from")
        return 1
    if not keywords:
        logger.error("No keywords given")
        return 1

    context = OptimizationContext(job_description=job, custom_instructions=args.instructions)
    optimizer = BulletOptimizer(tracker, session_id, config, model=settings.llm_model)

    plan = build_optimization_plan(resume, keywords, config)
    results = optimizer.optimize_bullets_parallel(plan, context)
    applied = apply_optimizations(resume, results)

    stats = tracker.get_session_stats(session_id) or {}
    logger.info(
        f"Optimized {applied}/{len(plan)} bullets | session {session_id} | "
        f"tokens {stats.get('total_tokens', 0)} | cost ${stats.get('estimated_cost', 0.0):.6f}"
    )
    _write_or_print(json.dumps(resume.model_dump(mode="json"), indent=2), args.output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resume-craft",
        description="Parse, edit, rebuild and compile LaTeX resumes while keeping their formatting.",
    )
    parser.add_argument("--no-log-file", action="store_true", help="Log to the console only.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", help="Parse a .tex or .docx resume into a JSON snapshot.")
    p.add_argument("file")
    p.add_argument("-o", "--output", help="Write the snapshot here instead of stdout.")
    p.set_defaults(func=cmd_parse)

    p = sub.add_parser("reconstruct", help="Rebuild LaTeX from a JSON snapshot.")
    p.add_argument("snapshot")
    p.add_argument("-o", "--output", help="Write the LaTeX here instead of stdout.")
    p.set_defaults(func=cmd_reconstruct)

    p = sub.add_parser("export", help="Export a snapshot as <name>.tex (original source if it cannot be rebuilt).")
    p.add_argument("snapshot")
    p.add_argument("--out-dir", default=None, help="Target directory (default: output/exports).")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("compile", help="Compile LaTeX to PDF with the remote compile service.")
    p.add_argument("tex")
    p.add_argument("-o", "--output", help="PDF path (default: next to the .tex file).")
    p.add_argument("--no-validate", action="store_true", help="Skip local validation.")
    p.set_defaults(func=cmd_compile)

    p = sub.add_parser("optimize", help="Rewrite bullets to include target keywords.")
    p.add_argument("snapshot")
    p.add_argument("--keywords", default=None, help="Comma-separated keywords (default: extracted from --job).")
    p.add_argument("--mode", choices=["full", "targeted"], default="targeted")
    p.add_argument("--job", help="Job description text file used as context and keyword source.")
    p.add_argument("--instructions", help="Extra instructions for the rewriter.")
    p.add_argument("--max-concurrent", type=int, default=None)
    p.add_argument("--session", help="Usage tracking session id.")
    p.add_argument("-o", "--output", help="Write the updated snapshot here instead of stdout.")
    p.set_defaults(func=cmd_optimize)

    p = sub.add_parser("keywords", help="Extract job keywords and report the resume coverage gap.")
    p.add_argument("snapshot")
    p.add_argument("--job", required=True, help="Job description text file.")
    p.add_argument("--session", help="Usage tracking session id.")
    p.add_argument("-o", "--output", help="Write the analysis here instead of stdout.")
    p.set_defaults(func=cmd_keywords)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    init_logger(settings.log_dir, log_level=settings.log_level, log_to_file=not args.no_log_file)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
