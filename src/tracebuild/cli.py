# -*- coding: utf-8 -*-
"""
tracebuild 命令行

Usage:
    # 生成 build id 与开始时间
    BUILD_ID=$(tracebuild id)
    BUILD_START=$(tracebuild now)

    # 运行命令并上报 span
    tracebuild cmd --build "$BUILD_ID" make test

    # 上报 step
    STEP_ID=$(tracebuild id)
    STEP_START=$(tracebuild now)
    tracebuild cmd --build "$BUILD_ID" --step "$STEP_ID" cargo build
    tracebuild step --build "$BUILD_ID" --id "$STEP_ID" --start-time "$STEP_START" --name compile

    # 上报 build
    tracebuild build --id "$BUILD_ID" --start-time "$BUILD_START" --branch main --status success

Environment:
    OTEL_TRACES_EXPORTER       otlp, jaeger, stdout, none (default: otlp)
    OTEL_METRICS_EXPORTER      otlp, prometheus, stdout, none (default: none)
    TRACEBUILD_LOG_LEVEL       debug, info, warning, error (default: warning)
    TRACEBUILD_LOG_FORMATTER   glog, text, json (default: glog)
    TRACEBUILD_LOG_REPORT_CALLER, TRACEBUILD_LOG_COLORS
                               true, 1, yes to enable (default: off)
"""

import argparse
import asyncio
import sys
from typing import Callable, List, Optional, TypeVar

from tracebuild.__version__ import __description__, __version__
from tracebuild.commands import report_build, report_step, run_cmd
from tracebuild.errors import TracebuildError
from tracebuild.id import BuildId, StepId
from tracebuild.logs import LogConfig, install_logs
from tracebuild.opentelemetry.pipeline import install_pipeline
from tracebuild.status import Status
from tracebuild.timestamp import Timestamp

T = TypeVar("T")


def _argument_type(parse: Callable[[str], T]) -> Callable[[str], T]:
    """把解析错误转换为 argparse 的参数错误"""

    def convert(text: str) -> T:
        try:
            return parse(text)
        except TracebuildError as e:
            raise argparse.ArgumentTypeError(str(e)) from e

    convert.__name__ = parse.__name__
    return convert


build_id_type = _argument_type(BuildId.parse)
step_id_type = _argument_type(StepId.parse)
timestamp_type = _argument_type(Timestamp.parse)
status_type = _argument_type(Status.parse)


def _cmd_id(args: argparse.Namespace) -> int:
    print(BuildId.generate())
    return 0


def _cmd_now(args: argparse.Namespace) -> int:
    print(Timestamp.now())
    return 0


def _cmd_cmd(args: argparse.Namespace) -> int:
    pipeline = install_pipeline()
    try:
        return asyncio.run(run_cmd(pipeline, args.build, args.step, args.cmd, args.args))
    finally:
        pipeline.shutdown()


def _cmd_step(args: argparse.Namespace) -> int:
    pipeline = install_pipeline()
    try:
        report_step(
            pipeline,
            args.build,
            args.step,
            args.id,
            args.start_time,
            name=args.name,
            status=args.status,
        )
    finally:
        pipeline.shutdown()
    return 0


def _cmd_build(args: argparse.Namespace) -> int:
    pipeline = install_pipeline()
    try:
        report_build(
            pipeline,
            args.id,
            args.start_time,
            name=args.name,
            branch=args.branch,
            commit=args.commit,
            status=args.status,
        )
    finally:
        pipeline.shutdown()
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="tracebuild",
        description=__description__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    id_parser = subparsers.add_parser(
        "id",
        help="Generates an ID, which can be used as either a span or build id",
    )
    id_parser.set_defaults(func=_cmd_id)

    now_parser = subparsers.add_parser(
        "now",
        help="Generates a timestamp, which can be used as a build or span start time",
    )
    now_parser.set_defaults(func=_cmd_now)

    cmd_parser = subparsers.add_parser(
        "cmd",
        help="Executes the specified command and reports a span",
    )
    cmd_parser.add_argument("--build", type=build_id_type, required=True, help="Build ID")
    cmd_parser.add_argument("--step", type=step_id_type, help="Optional parent step ID")
    cmd_parser.add_argument("cmd", metavar="CMD", help="Command name")
    cmd_parser.add_argument("args", metavar="ARGS", nargs=argparse.REMAINDER, help="Command arguments")
    cmd_parser.set_defaults(func=_cmd_cmd)

    step_parser = subparsers.add_parser(
        "step",
        help="Reports a span with references to the given build and optional parent step",
    )
    step_parser.add_argument("--build", type=build_id_type, required=True, help="Build ID")
    step_parser.add_argument("--step", type=step_id_type, help="Optional parent step ID")
    step_parser.add_argument("--id", type=step_id_type, required=True, help="Step ID")
    step_parser.add_argument("--start-time", type=timestamp_type, required=True, help="Start time")
    step_parser.add_argument("--name", help="Optional name")
    step_parser.add_argument("--status", type=status_type, help="Optional status (success, failure)")
    step_parser.set_defaults(func=_cmd_step)

    build_parser_ = subparsers.add_parser(
        "build",
        help="Reports a build span with the given ID and metadata",
    )
    build_parser_.add_argument("--id", type=build_id_type, required=True, help="Build ID")
    build_parser_.add_argument("--start-time", type=timestamp_type, required=True, help="Start time")
    build_parser_.add_argument("--name", help="Optional name")
    build_parser_.add_argument("--branch", help="Optional branch name")
    build_parser_.add_argument("--commit", help="Optional commit SHA")
    build_parser_.add_argument("--status", type=status_type, help="Optional status (success, failure)")
    build_parser_.set_defaults(func=_cmd_build)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    命令行入口

    Args:
        argv: 命令行参数，默认 sys.argv[1:]

    Returns:
        进程退出码
    """
    args = build_parser().parse_args(argv)
    install_logs(LogConfig.from_env())
    return args.func(args)


def run() -> None:
    """console script 入口"""
    sys.exit(main())
