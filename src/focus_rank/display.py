"""Rich terminal display for focus-rank."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

_TIER_COLORS: dict[str, str] = {
    "None": "grey50",
    "Skill": "green",
    "Expertise": "deep_sky_blue1",
    "Mastery": "gold1",
}

_PHASE_STYLES: dict[str, tuple[str, str]] = {
    "focus": ("Focus", "red1"),
    "shortBreak": ("Short Break", "green"),
    "longBreak": ("Long Break", "deep_sky_blue1"),
}


def _tier_color(tier: str) -> str:
    return _TIER_COLORS.get(tier, "white")


def format_number(n: float) -> str:
    """Format large numbers: 421543 -> '421.5K', 1200 -> '1,200', 1234567 -> '1.2M'.

    Fractional XP is rounded for display only.
    """
    n = round(n)
    if n >= 1_000_000:
        value = n / 1_000_000
        if value >= 100:
            return f"{value:.0f}M"
        return f"{value:.1f}M"
    if n >= 10_000:
        value = n / 1_000
        if value >= 1000:
            return f"{value:.0f}K"
        return f"{value:.1f}K"
    return f"{n:,}"


def _xp_bar(current: float, total: float, width: int = 20) -> str:
    """Render a progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "█" * width + "]"
    ratio = max(0.0, min(current / total, 1.0))
    filled = int(ratio * width)
    empty = width - filled
    return "[" + "█" * filled + "░" * empty + "]"


def print_profile(data: dict) -> None:
    """Print the profile panel: attributes with XP bars and lifetime totals."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold]{data.get('name', '')}[/]")

    for attr in data.get("attributes", []):
        bar = _xp_bar(attr["current_xp"], attr["xp_to_next_level"], width=16)
        lines.append("")
        lines.append(f"  [bold]{attr['name']}[/]  Lv {attr['level']}")
        lines.append(
            f"  {bar} {format_number(attr['current_xp'])}/{format_number(attr['xp_to_next_level'])} XP"
        )

    lines.append("")
    lines.append(
        f"  ⏱  Focus: {data.get('total_hours', 0.0):.1f}h  |  "
        f"✨ XP: {format_number(data.get('total_xp', 0))}  |  "
        f"\U0001f4ca Sessions: {data.get('session_count', 0)}"
    )
    lines.append(f"  Skills: {data.get('skill_count', 0)}")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]FOCUS RANK[/]",
        box=box.ROUNDED,
        border_style="blue",
        width=56,
    )
    console.print(panel)


def print_skills(skills: list[dict]) -> None:
    """Print skills with tier and progress to the next tier."""
    if not skills:
        console.print(
            Panel(
                "\n  No skills yet. Run [bold]focus-rank skill add <name>[/] to create one.\n",
                title="[bold]Skills[/]",
                box=box.ROUNDED,
                border_style="grey50",
                width=56,
            )
        )
        return

    table = Table(
        title="Skills",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("ID", style="dim")
    table.add_column("Skill", min_width=14)
    table.add_column("Tier", width=10)
    table.add_column("Hours", justify="right")
    table.add_column("Next Tier", min_width=22)
    table.add_column("Attributes")

    for skill in skills:
        color = _tier_color(skill["tier"])
        progress = skill.get("progress")
        if progress:
            bar = _xp_bar(progress["current"], progress["target"], width=10)
            progress_text = f"{bar} {progress['current']:.1f}/{progress['target']:g}h"
        else:
            progress_text = "[gold1]MASTERED[/]"
        table.add_row(
            skill["id"],
            f"[bold]{skill['name']}[/]",
            f"[{color}]{skill['tier']}[/{color}]",
            f"{skill['total_hours']:.1f}",
            progress_text,
            ", ".join(skill.get("attribute_names", [])),
        )

    console.print(table)


def print_history(sessions: list[dict]) -> None:
    """Print completed sessions, newest first."""
    table = Table(
        title="Session History",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Date", width=16)
    table.add_column("Focus", justify="right")
    table.add_column("Blocks", justify="right")
    table.add_column("XP", justify="right")
    table.add_column("Skill")

    for session in sessions:
        table.add_row(
            session["start"],
            f"{session['focus_minutes']:.0f}m",
            str(session["blocks"]),
            format_number(session["total_xp"]),
            session.get("skill_name") or "",
        )

    console.print(table)


def print_xp_breakdown(data: dict, title: str = "XP Breakdown") -> None:
    """Print base, streak bonus, accelerated bonus and total XP."""
    table = Table(
        title=title,
        box=box.ROUNDED,
        show_header=False,
    )
    table.add_column("Part", style="bold")
    table.add_column("XP", justify="right")
    table.add_row("Focus minutes", f"{data.get('focus_minutes', 0):.0f}")
    table.add_row("Base focus XP", format_number(data.get("base_focus_xp", 0)))
    table.add_row("Streak bonus", format_number(data.get("streak_bonus_xp", 0)))
    table.add_row("Accelerated bonus", format_number(data.get("accelerated_bonus_xp", 0)))
    table.add_section()
    table.add_row("Total", f"[bold]{format_number(data.get('total_xp', 0))}[/]")
    console.print(table)


def print_session_summary(data: dict) -> None:
    """Print what a finished session earned."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"  Focus time:   {data.get('focus_minutes', 0):.0f}m")
    lines.append(f"  Blocks:       {data.get('blocks', 0)}")
    lines.append(f"  XP earned:    [bold]{format_number(data.get('total_xp', 0))}[/]")

    skill_name = data.get("skill_name")
    if skill_name:
        lines.append(f"  {skill_name}: +{data.get('skill_hours', 0.0):.1f} hours")
    new_tier = data.get("new_tier")
    if new_tier:
        lines.append(f"  \U0001f3c6 Promoted to [{_tier_color(new_tier)}]{new_tier}[/]")

    for name in data.get("attribute_names", []):
        lines.append(f"  {name}: +{format_number(data.get('total_xp', 0))} XP")
    for level_up in data.get("level_ups", []):
        lines.append(
            f"  ⬆  {level_up['name']} Lv {level_up['old_level']} → Lv {level_up['new_level']}"
        )
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]Session Complete[/]",
        box=box.ROUNDED,
        border_style="green",
        width=56,
    )
    console.print(panel)


def print_nothing_to_report() -> None:
    panel = Panel(
        "\n  No session is open. Start one with [bold]focus-rank timer start[/].\n",
        title="[bold]FOCUS RANK[/]",
        box=box.ROUNDED,
        border_style="grey50",
        width=56,
    )
    console.print(panel)


def print_settings(data: dict) -> None:
    audio = "on" if data.get("audio_enabled") else "off"
    console.print(
        Panel(
            f"\n  Audio:  {audio}\n  Volume: {int(data.get('volume', 0) * 100)}%\n",
            title="[bold]Settings[/]",
            box=box.ROUNDED,
            border_style="grey50",
            width=56,
        )
    )


def render_timer(data: dict) -> Panel:
    """Build the live timer panel (used with rich.live.Live)."""
    label, color = _PHASE_STYLES.get(data.get("phase", "focus"), ("Focus", "red1"))
    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold {color}]{label}[/]   [bold]{data.get('time', '25:00')}[/]")
    lines.append("")
    lines.append(
        f"  Focus: {data.get('focus_minutes', 0):.0f}m  |  "
        f"Streak: {data.get('streak_hours', 0.0):.1f}h  |  "
        f"Blocks: {data.get('blocks', 0)}"
    )
    lines.append(f"  Projected XP: [bold]{format_number(data.get('projected_xp', 0))}[/]")
    if data.get("is_paused"):
        lines.append("  [yellow]Paused[/]")
    lines.append("")
    lines.append("  [dim]Ctrl+C to stop and collect XP[/]")

    return Panel(
        "\n".join(lines),
        title="[bold]POMODORO[/]",
        box=box.ROUNDED,
        border_style=color,
        width=56,
    )


def print_config(data: dict) -> None:
    console.print(
        Panel(
            f"\n  Database:  {data.get('db_path', '')}\n"
            f"  Log file:  {data.get('log_file', '')}\n"
            f"  Log level: {data.get('log_level', '')}\n",
            title="[bold]Config[/]",
            box=box.ROUNDED,
            border_style="grey50",
        )
    )
