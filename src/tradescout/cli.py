from __future__ import annotations

import argparse
import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from tradescout.config import AppConfig
from tradescout.errors import InvalidInputError
from tradescout.models import AnalysisFailure, ScoreResult
from tradescout.pipelines.analysis import Analyzer
from tradescout.pipelines.scan import run_market_view, run_scan
from tradescout.providers.factory import PROVIDER_KINDS, build_market_provider
from tradescout.skills.ranker import Criteria


def _fmt(v: float | None, digits: int = 2) -> str:
    return "-" if v is None else f"{v:.{digits}f}"


_STATUS_STYLE = {"ok": "green", "warning": "yellow", "error": "red"}


def _print_diagnostics(report: dict) -> None:
    if not report.get("diagnostics"):
        return

    table = Table(title="Diagnostics")
    for column in ("Stage", "Status", "ms", "Detail"):
        table.add_column(column)
    for stage in report["diagnostics"]:
        style = _STATUS_STYLE.get(stage["status"], "")
        table.add_row(
            stage["stage"],
            f"[{style}]{stage['status']}[/{style}]" if style else stage["status"],
            f"{stage['duration_ms']:.1f}",
            escape(stage["detail"]),
        )
    Console().print(table)


def _print_ranking(title: str, results: list[ScoreResult]) -> None:
    table = Table(title=title)
    table.add_column("#")
    table.add_column("Ticker")
    table.add_column("Score")
    table.add_column("Recommendation")
    table.add_column("Entry")
    table.add_column("Target")
    table.add_column("Stop")
    table.add_column("RSI")
    table.add_column("Chg %")

    for i, r in enumerate(results, start=1):
        table.add_row(
            str(i),
            r.symbol,
            f"{r.score}/{r.max_score}",
            r.label,
            _fmt(r.plan.entry),
            _fmt(r.plan.target2),
            _fmt(r.plan.stop_loss),
            _fmt(r.snapshot.rsi),
            _fmt(r.snapshot.change_percent),
        )

    Console().print(table)


def _print_failure(failure: AnalysisFailure) -> None:
    Console().print(f"[red]{failure.symbol}: {failure.kind.value} ({failure.message})[/red]")


def _print_report(report: dict, title: str) -> None:
    _print_diagnostics(report)
    console = Console()
    if report["status"] == "failed":
        console.print(f"[red]Scan failed at stage: {report.get('failed_stage', 'unknown')}[/red]")
        raise SystemExit(1)
    if report["status"] == "degraded":
        console.print(f"[yellow]Skipped tickers: {', '.join(report['failed'])}[/yellow]")

    table = Table(title=title)
    table.add_column("Ticker")
    table.add_column("Score")
    table.add_column("Recommendation")
    table.add_column("Entry")
    table.add_column("Target")
    table.add_column("Stop")
    for item in report["recommendations"]:
        table.add_row(
            item["symbol"],
            str(item["score"]),
            item["label"],
            _fmt(item["entry"]),
            _fmt(item["target"]),
            _fmt(item["stop_loss"]),
        )
    console.print(table)


def _analyzer(args: argparse.Namespace) -> Analyzer:
    cfg: AppConfig = args.config
    provider = build_market_provider(args.provider or cfg.provider.kind, cfg.provider)
    return Analyzer(provider, cfg)


def cmd_analyze(args: argparse.Namespace) -> None:
    result = _analyzer(args).analyze(args.ticker)
    if isinstance(result, AnalysisFailure):
        _print_failure(result)
        raise SystemExit(1)

    console = Console()
    s = result.snapshot
    console.print(
        f"[bold]{result.symbol}[/bold] {_fmt(s.price)} {s.currency or ''} "
        f"({s.change:+.2f}, {s.change_percent:+.2f}%)"
    )
    console.print(
        f"Score [bold]{result.score}/{result.max_score}[/bold]  {result.label}  "
        f"probability {result.probability}  confidence {result.confidence}%"
    )
    console.print(f"Action: {result.action}  (urgency: {result.urgency})")

    reasons = Table(title="Signals")
    reasons.add_column("")
    reasons.add_column("Signal")
    reasons.add_column("Points")
    for r in result.reasons:
        reasons.add_row(r.icon, r.text, f"{r.points:+d}")
    console.print(reasons)

    plan = Table(title="Trade plan")
    plan.add_column("Entry")
    plan.add_column("Target 1")
    plan.add_column("Target 2")
    plan.add_column("Stop loss")
    plan.add_row(
        _fmt(result.plan.entry),
        _fmt(result.plan.target1),
        _fmt(result.plan.target2),
        _fmt(result.plan.stop_loss),
    )
    console.print(plan)


def cmd_quote(args: argparse.Namespace) -> None:
    batch = _analyzer(args).snapshots(args.tickers)

    table = Table(title=f"Quotes ({len(batch.successful)}/{batch.total})")
    table.add_column("Ticker")
    table.add_column("Price")
    table.add_column("Chg %")
    table.add_column("RSI")
    table.add_column("Trend")
    table.add_column("Vol ratio")
    table.add_column("P/E")
    for s in batch.successful:
        table.add_row(
            s.symbol,
            _fmt(s.price),
            _fmt(s.change_percent),
            _fmt(s.rsi),
            s.trend.value,
            _fmt(s.volume_ratio),
            _fmt(s.pe) if s.pe_reliable else "n/a",
        )
    Console().print(table)
    for failure in batch.failed:
        _print_failure(failure)


def cmd_rank(args: argparse.Namespace) -> None:
    analyzer = _analyzer(args)
    if args.sector:
        sector = analyzer.universe.sector(args.sector)
        results = analyzer.rank_sector(sector.key, args.limit)
        title = f"{sector.name} top {len(results)}"
    else:
        results = analyzer.rank_batch(args.tickers, args.limit)
        title = f"Custom list ({len(results)})"
    _print_ranking(title, results)


def cmd_scan(args: argparse.Namespace) -> None:
    analyzer = _analyzer(args)
    report = run_scan(
        analyzer,
        list(analyzer.universe.scanner),
        label="scanner",
        limit=analyzer.config.ranking.scanner_limit if args.limit is None else args.limit,
        criteria=args.criteria,
    )
    title = "Scanner" if not args.criteria else f"Scanner: {args.criteria}"
    _print_report(report, title)


def cmd_market(args: argparse.Namespace) -> None:
    report = run_market_view(_analyzer(args), args.market, args.hour)
    title = report["market"] if not args.hour else f"{report['market']} at {args.hour}"
    _print_report(report, title)


def cmd_sectors(args: argparse.Namespace) -> None:
    universe = _analyzer(args).universe
    table = Table(title="Sectors")
    table.add_column("Key")
    table.add_column("Name")
    table.add_column("Tickers")
    table.add_column("Description")
    for key in universe.keys():
        s = universe.sector(key)
        table.add_row(s.key, s.name, " ".join(s.tickers), s.description)
    Console().print(table)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tradescout")
    parser.add_argument(
        "--provider",
        type=str,
        default=None,
        choices=list(PROVIDER_KINDS),
        help="market data source (default: TRADESCOUT_PROVIDER or yfinance)",
    )
    parser.add_argument("--log-level", type=str, default=None, help="logging level, e.g. DEBUG")
    sub = parser.add_subparsers(required=True)

    analyze = sub.add_parser("analyze", help="score one ticker")
    analyze.add_argument("ticker", type=str)
    analyze.set_defaults(func=cmd_analyze)

    quote = sub.add_parser("quote", help="show indicator snapshots")
    quote.add_argument("tickers", nargs="+")
    quote.set_defaults(func=cmd_quote)

    rank = sub.add_parser("rank", help="rank a sector or a custom list")
    group = rank.add_mutually_exclusive_group(required=True)
    group.add_argument("--sector", type=str)
    group.add_argument("--tickers", nargs="+")
    rank.add_argument("--limit", type=int, default=None)
    rank.set_defaults(func=cmd_rank)

    scan = sub.add_parser("scan", help="rank the scanner universe")
    scan.add_argument("--criteria", type=str, default=None, choices=[c.value for c in Criteria])
    scan.add_argument("--limit", type=int, default=None)
    scan.set_defaults(func=cmd_scan)

    market = sub.add_parser("market", help="top picks for a market session")
    market.add_argument("market", type=str, help="sector key, e.g. usa or europe")
    market.add_argument("--hour", type=str, default=None, help="session label, e.g. 09:00")
    market.set_defaults(func=cmd_market)

    sectors = sub.add_parser("sectors", help="list sectors and watchlists")
    sectors.set_defaults(func=cmd_sectors)
    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.config = AppConfig.from_env()

    logging.basicConfig(
        level=(args.log_level or args.config.log_level).upper(),
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )

    try:
        args.func(args)
    except InvalidInputError as e:
        Console().print(f"[red]{e}[/red]")
        raise SystemExit(2) from e


if __name__ == "__main__":
    main()
