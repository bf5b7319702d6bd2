from __future__ import annotations

import os
import sys
from datetime import date
from pathlib import Path
from typing import Dict, Optional

import questionary as q
import yaml
from colorama import Fore, Style as CStyle, init as colorama_init
from dotenv import load_dotenv
from questionary import Style
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from artcases.config import DEFAULT_CFG, Settings, load_settings, load_yaml
from artcases.exceptions import ArtCasesError, NothingToReport, ValidationError
from artcases.logs import configure_logging
from artcases.models import Banned, IdentityFailed, Priced, PricingFailed, Skipped
from artcases.orchestrator import BatchProcessor, BatchResult
from artcases.report import ban_label, format_brl, format_percent
from artcases.utils import open_folder, stamp, write_text


# ────────────────────────────── Initialization

colorama_init(autoreset=True)

THEME = Theme(
    {
        "accent": "cyan",
        "hint": "cyan",
        "warn": "yellow",
        "info": "white",
        "success": "green",
        "error": "bold red",
    }
)
console = Console(theme=THEME)


def app_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    return Path(__file__).parent


ROOT = app_root()
PROFILES = ROOT / "profiles"
ENV = ROOT / ".env"

# ────────────────────────────── Styles (CMD-Safe)
CUSTOM_STYLE = Style(
    [
        ("qmark", "fg:yellow bold"),
        ("question", "fg:cyan bold"),
        ("answer", "fg:green bold"),
        ("pointer", "fg:yellow bold"),
        ("selected", "fg:black bg:yellow bold"),
        ("highlighted", "fg:black bg:yellow bold"),
        ("instruction", "fg:gray"),
        ("text", ""),
        ("disabled", "fg:gray"),
    ]
)


# ────────────────────────────── Banner

def clear_cmd() -> None:
    os.system("cls" if os.name == "nt" else "clear")


def print_banner() -> None:
    clear_cmd()
    print(Fore.CYAN + CStyle.BRIGHT + "art cases :: steam inventory checker")
    print(Fore.CYAN + "-" * 70 + "\n")


# ────────────────────────────── ENV / Config

KEYS = {
    "STEAM_API_KEY": "Get your Steam key: https://steamcommunity.com/dev/apikey",
    "MONTUGA_API_KEY": "Get your pricing key from your Montuga account page",
}


def _ensure_env() -> None:
    load_dotenv(dotenv_path=ENV)
    missing = [k for k in KEYS if not os.getenv(k, "").strip()]
    if not missing:
        return
    lines = []
    for name in missing:
        console.print(KEYS[name], style="hint")
        key = q.text(f"Paste your {name}", style=CUSTOM_STYLE).ask()
        if not key:
            console.print("No key; exiting.", style="warn")
            sys.exit(1)
        lines.append(f"{name}={key.strip()}\n")
    with ENV.open("a", encoding="utf-8") as f:
        f.writelines(lines)
    load_dotenv(dotenv_path=ENV, override=True)


def _load_default_cfg() -> Dict:
    data = load_yaml(DEFAULT_CFG)
    PROFILES.mkdir(parents=True, exist_ok=True)
    return data


def _settings(cfg: Dict) -> Settings:
    data = dict(cfg)
    for key in ("history_file", "outputs_dir"):
        path = Path(data.get(key) or "")
        if not path.is_absolute():
            data[key] = str(ROOT / path)
    return load_settings(overrides=data)


# ────────────────────────────── Prompts

def _pick_preset(cfg: Dict) -> Dict:
    choice = q.select(
        "Choose a preset:",
        choices=[
            "Careful (25 req/min pricing, 4 identity workers)",
            "Default (50 req/min pricing, 16 identity workers)",
            "Custom (load/save profile)",
            "Back",
        ],
        style=CUSTOM_STYLE,
    ).ask()
    if choice and choice.startswith("Careful"):
        cfg.update({"pricing_rpm": 25, "identity_workers": 4})
    elif choice and choice.startswith("Default"):
        cfg.update({"pricing_rpm": 50, "identity_workers": 16})
    elif choice == "Custom (load/save profile)":
        cfg = _profiles_menu(cfg)
    return cfg


def _profiles_menu(cfg: Dict) -> Dict:
    PROFILES.mkdir(parents=True, exist_ok=True)
    profiles = [p.stem for p in PROFILES.glob("*.yaml")]
    choice = q.select(
        "Profiles:",
        choices=["Save current as...", *profiles, "Back"],
        style=CUSTOM_STYLE,
    ).ask()
    if choice == "Save current as...":
        name = q.text("Profile name:", style=CUSTOM_STYLE).ask()
        if name:
            path = PROFILES / f"{name}.yaml"
            path.write_text(yaml.safe_dump(cfg, sort_keys=False), encoding="utf-8")
            console.print(f"Saved profiles/{name}.yaml", style="accent")
    elif choice and choice != "Back":
        path = PROFILES / f"{choice}.yaml"
        cfg = {**cfg, **load_yaml(path)}
        console.print(f"Loaded profiles/{choice}.yaml", style="accent")
    return cfg


def _guided_config(cfg: Dict) -> Dict:
    console.print("Guided Config (Press Enter for default)", style="accent")
    cfg["usd_to_brl_rate"] = float(
        q.text(
            f"USD -> BRL rate [default {cfg['usd_to_brl_rate']}]",
            style=CUSTOM_STYLE,
        ).ask()
        or cfg["usd_to_brl_rate"]
    )
    cfg["pricing_rpm"] = int(
        q.text(f"pricing_rpm [default {cfg['pricing_rpm']}]", style=CUSTOM_STYLE).ask()
        or cfg["pricing_rpm"]
    )
    cfg["identity_workers"] = int(
        q.text(
            f"identity_workers [default {cfg['identity_workers']}]",
            style=CUSTOM_STYLE,
        ).ask()
        or cfg["identity_workers"]
    )
    cfg["fetch_cases"] = q.confirm(
        f"fetch_cases? [default {cfg['fetch_cases']}]",
        default=cfg["fetch_cases"],
        style=CUSTOM_STYLE,
    ).ask()
    if q.confirm(
        "Advanced options (retries, report window)?",
        default=False,
        style=CUSTOM_STYLE,
    ).ask():
        cfg["retry_transient_failures"] = q.confirm(
            "Retry ids that failed on network errors in the next batch?",
            default=cfg["retry_transient_failures"],
            style=CUSTOM_STYLE,
        ).ask()
        cfg["report_window_hours"] = int(
            q.text(
                f"report_window_hours [default {cfg['report_window_hours']}]",
                style=CUSTOM_STYLE,
            ).ask()
            or cfg["report_window_hours"]
        )
    return cfg


# ────────────────────────────── Core logic

def _outputs(cfg: Dict) -> Path:
    return Path(_settings(cfg).outputs_dir)


def _make_processor(cfg: Dict) -> BatchProcessor:
    return BatchProcessor.from_settings(_settings(cfg))


def _status(item) -> str:
    if isinstance(item, Skipped):
        return "[warn]skipped (in history)"
    if isinstance(item, IdentityFailed):
        return f"[error]{escape(item.reason)}"
    if isinstance(item, Banned):
        return "[error]VAC BAN"
    if isinstance(item, PricingFailed):
        return f"[warn]{escape(item.reason)}"
    return "[success]priced"


def _print_result(result: BatchResult) -> None:
    table = Table(title="Batch result", header_style="accent")
    for col in ("SteamID", "Name", "Ban", "Value", "% cases", "Status"):
        table.add_column(col)
    for item in result.items:
        if isinstance(item, (Priced, Banned)):
            s = item.snapshot
            table.add_row(
                s.steamid, escape(s.name), ban_label(s), format_brl(s.total_value),
                format_percent(s.cases_percent), _status(item),
            )
        else:
            table.add_row(item.steamid, "", "", "", "", _status(item))
    console.print(table)
    console.print(
        f"New inventories: {result.success_count} | concluded: {result.concluded_count}",
        style="accent",
    )
    if not result.saved and any(not isinstance(i, Skipped) for i in result.items):
        console.print("History was NOT saved; see log above.", style="warn")


def _save_report(result: BatchResult, cfg: Dict) -> None:
    if not result.success_count:
        return
    out_dir = _outputs(cfg) / stamp()
    path = write_text(
        out_dir / f"relatorio_artcases_execucao_{date.today().isoformat()}.html",
        result.report_html,
    )
    console.print(f"Report → {path}", style="accent")
    if q.confirm("Open output folder?", default=True, style=CUSTOM_STYLE).ask():
        open_folder(out_dir)


def run_batch(raw: str, cfg: Dict) -> None:
    proc = _make_processor(cfg)
    try:
        result = proc.run(raw)
    except ValidationError as e:
        console.print(str(e), style="warn")
        return
    _print_result(result)
    _save_report(result, cfg)


def run_batch_from_file(cfg: Dict) -> None:
    s = q.path("Text file with one SteamID64 per line:", style=CUSTOM_STYLE).ask()
    if not s:
        return
    path = Path(s).expanduser()
    if not path.is_file():
        console.print("File not found.", style="warn")
        return
    run_batch(path.read_text(encoding="utf-8", errors="ignore"), cfg)


def lookup_single(cfg: Dict) -> None:
    s = q.text("Enter SteamID64", style=CUSTOM_STYLE).ask()
    if not s:
        return
    proc = _make_processor(cfg)
    try:
        result = proc.lookup(s)
    except ValidationError as e:
        console.print(str(e), style="warn")
        return
    _print_result(result)
    _save_report(result, cfg)


def download_history(cfg: Dict) -> None:
    proc = _make_processor(cfg)
    try:
        report = proc.history_report()
    except NothingToReport as e:
        console.print(str(e), style="warn")
        return
    out_dir = _outputs(cfg) / stamp()
    path = write_text(out_dir / report.filename, report.html)
    console.print(f"{report.count} profiles → {path}", style="accent")
    if q.confirm("Open output folder?", default=True, style=CUSTOM_STYLE).ask():
        open_folder(out_dir)


def pick_recent(cfg: Dict) -> None:
    runs = sorted([p.name for p in _outputs(cfg).glob("*") if p.is_dir()], reverse=True)
    if not runs:
        console.print("No runs yet", style="warn")
        return
    run = q.select("Choose run", choices=runs + ["Back"], style=CUSTOM_STYLE).ask()
    if run and run != "Back":
        open_folder(_outputs(cfg) / run)


def _ask_ids() -> Optional[str]:
    s = q.text(
        "Paste SteamID64s (space, comma or newline separated; Esc+Enter to finish)",
        multiline=True,
        style=CUSTOM_STYLE,
    ).ask()
    return s


# ────────────────────────────── Entry point
def main() -> None:
    if os.name == "nt":
        os.system("chcp 65001 >nul")
    print_banner()
    _ensure_env()
    cfg = _load_default_cfg()
    configure_logging(cfg.get("log_level", "INFO"), console=console)

    while True:
        choice = q.select(
            "What do you want to do?",
            choices=[
                "Process SteamIDs",
                "Process SteamIDs from file",
                "Lookup single SteamID64",
                "Download last 24h history",
                "Presets",
                "Config",
                "Recent outputs",
                "Quit",
            ],
            style=CUSTOM_STYLE,
        ).ask()

        if not choice or choice == "Quit":
            break
        try:
            if choice == "Process SteamIDs":
                raw = _ask_ids()
                if raw is not None:
                    run_batch(raw, cfg)
            elif choice == "Process SteamIDs from file":
                run_batch_from_file(cfg)
            elif choice == "Lookup single SteamID64":
                lookup_single(cfg)
            elif choice == "Download last 24h history":
                download_history(cfg)
            elif choice == "Presets":
                cfg = _pick_preset(cfg)
            elif choice == "Config":
                cfg = _guided_config(cfg)
            elif choice == "Recent outputs":
                pick_recent(cfg)
        except ArtCasesError as e:
            console.print(str(e), style="error")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console.print("\n[warn]ctrl-c; bye")
