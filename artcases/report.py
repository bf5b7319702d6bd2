"""HTML report rendering.

Everything here is a pure function of its arguments: the caller passes the
rows, the counts and the generation time.
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Iterable, List

from .models import ProfileSnapshot

PROFILE_URL = "https://steamcommunity.com/profiles/{}"

STYLE = """
        body { font-family: Arial, sans-serif; background: #1a1a2e; color: #E0E0E0; margin: 20px; }
        h1 { color: #FF5722; font-size: 1.5em; border-bottom: 2px solid #333; padding-bottom: 10px; }
        p { color: #AAAAAA; }
        table { width: 100%; border-collapse: collapse; margin-top: 20px; font-size: 0.95em; border: 1px solid #444; }
        th, td { padding: 12px; text-align: center; border: 1px solid #444; }
        th { background: #2a2a40; color: #FF5722; text-transform: uppercase; }
        tr:nth-child(even) { background: #1e1e32; }
        a { color: #5cb85c; text-decoration: none; }
        .info-message { color: #888; text-align: center; padding: 50px; }
        .vac-ban-cell { background: #4a1a1a; font-weight: bold; color: #FF0000; }
        .game-ban-cell { background: #4a3a1a; font-weight: bold; color: #FFD700; }
        .clean { color: #5cb85c; font-weight: bold; }"""


@dataclass(frozen=True)
class ReportRow:
    snapshot: ProfileSnapshot
    date: str


def format_brl(value: float) -> str:
    return "R$ " + f"{value:.2f}".replace(".", ",")


def format_percent(value: float) -> str:
    return f"{value:.2f}".replace(".", ",") + "%"


def ban_label(snap: ProfileSnapshot) -> str:
    if snap.vac_banned:
        return "VAC BAN"
    if snap.game_bans > 0:
        return f"{snap.game_bans} BAN(S)"
    if snap.total_value == 0:
        return "Privado/Sem Itens"
    return "Clean"


def _ban_class(snap: ProfileSnapshot) -> str:
    if snap.vac_banned:
        return "vac-ban-cell"
    if snap.game_bans > 0:
        return "game-ban-cell"
    return "clean"


def sort_rows(rows: Iterable[ReportRow]) -> List[ReportRow]:
    """Highest value first; equal values keep their input order."""
    return sorted(rows, key=lambda r: r.snapshot.total_value, reverse=True)


def render_row(row: ReportRow) -> str:
    s = row.snapshot
    url = PROFILE_URL.format(escape(s.steamid))
    return (
        "      <tr>\n"
        f'        <td><a href="{url}" target="_blank">{escape(s.name)}</a></td>\n'
        f'        <td class="{_ban_class(s)}">{ban_label(s)}</td>\n'
        f"        <td>{format_brl(s.total_value)}</td>\n"
        f"        <td>{format_percent(s.cases_percent)}</td>\n"
        f"        <td>{escape(row.date)}</td>\n"
        "      </tr>\n"
    )


def render_report(
    rows: Iterable[ReportRow],
    new_count: int,
    total_count: int,
    title: str,
    generated_at: str,
) -> str:
    body = "".join(render_row(r) for r in sort_rows(rows))
    return f"""<!DOCTYPE html>
<html>
<head>
    <title>{escape(title)}</title>
    <meta charset="utf-8">
    <style>{STYLE}
    </style>
</head>
<body>
    <h1>{escape(title)} - {escape(generated_at)}</h1>
    <p>Inventários novos processados com sucesso: {new_count}.</p>
    <p>Total de IDs (Sucesso/Ban/Erro) processadas: {total_count}.</p>
    <table>
      <tr>
        <th>PERFIL STEAM</th>
        <th>STATUS BAN</th>
        <th>VALOR TOTAL (R$)</th>
        <th>% CASES</th>
        <th>DATA/HORA</th>
      </tr>
{body}    </table>
</body>
</html>
"""


def render_info(message: str) -> str:
    return f'<div class="info-message">{escape(message)}</div>'
