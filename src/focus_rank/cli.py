"""CLI commands for focus-rank."""

from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path

from rich.live import Live

from focus_rank.app import AppState, SessionAward
from focus_rank.config import get_db_path, get_log_file, get_log_level, set_db_path
from focus_rank.db import DEFAULT_DB_PATH
from focus_rank.display import (
    console,
    print_config,
    print_history,
    print_nothing_to_report,
    print_profile,
    print_session_summary,
    print_settings,
    print_skills,
    print_xp_breakdown,
    render_timer,
)
from focus_rank.logging_setup import setup_logger
from focus_rank.skills import SKILL_CATEGORY_IMAGES, get_tier_progress, image_for_category
from focus_rank.storage import Storage
from focus_rank.timer import format_time
from focus_rank.xp import SessionXP, project_session_xp

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="focus-rank",
        description="Level up your attributes with Pomodoro focus sessions",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("profile", help="Show attributes, levels and totals")
    subparsers.add_parser("skills", help="List skills and tier progress")
    subparsers.add_parser("history", help="List completed sessions")
    rename_p = subparsers.add_parser("rename", help="Change your display name")
    rename_p.add_argument("name")

    attr_parser = subparsers.add_parser("attribute", help="Manage attributes")
    attr_sub = attr_parser.add_subparsers(dest="attr_command")
    attr_add_p = attr_sub.add_parser("add", help="Create an attribute")
    attr_add_p.add_argument("name")
    attr_del_p = attr_sub.add_parser("delete", help="Delete a custom attribute")
    attr_del_p.add_argument("attribute_id")

    skill_parser = subparsers.add_parser("skill", help="Manage skills")
    skill_sub = skill_parser.add_subparsers(dest="skill_command")
    skill_add_p = skill_sub.add_parser("add", help="Create a skill")
    skill_add_p.add_argument("name")
    skill_add_p.add_argument("--category", "-c", choices=sorted(SKILL_CATEGORY_IMAGES), default=None)
    skill_add_p.add_argument("--image", default=None, help="Image URL (overrides --category)")
    skill_add_p.add_argument(
        "--attribute", "-a", action="append", default=[], dest="attributes",
        help="Linked attribute id (repeatable)",
    )
    skill_del_p = skill_sub.add_parser("delete", help="Delete a skill")
    skill_del_p.add_argument("skill_id")

    timer_parser = subparsers.add_parser("timer", help="Pomodoro timer")
    timer_sub = timer_parser.add_subparsers(dest="timer_command")
    timer_start_p = timer_sub.add_parser("start", help="Run the timer in the foreground")
    timer_start_p.add_argument("--skill", "-s", default=None, help="Skill id to credit")
    timer_start_p.add_argument(
        "--attribute", "-a", action="append", default=[], dest="attributes",
        help="Attribute id to credit (repeatable, default: all)",
    )
    timer_sub.add_parser("stop", help="Stop the open session and collect XP")
    timer_sub.add_parser("status", help="Show the saved timer state")
    timer_sub.add_parser("reset", help="Discard the open session")

    project_p = subparsers.add_parser("project", help="Preview XP for a session length")
    project_p.add_argument("--minutes", "-m", type=float, required=True)

    settings_p = subparsers.add_parser("settings", help="Show or change notification settings")
    settings_p.add_argument("--audio", choices=["on", "off"], default=None)
    settings_p.add_argument("--volume", type=float, default=None, help="0.0 to 1.0")

    config_p = subparsers.add_parser("config", help="Show or change where data is stored")
    config_p.add_argument("--db", default=None, help="Database path")
    return parser


def main() -> None:
    """Entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args()
    command = args.command or "profile"

    setup_logger()
    if command == "config":
        do_config(db_path=args.db)
        return

    app = AppState(Storage.open(get_db_path()))

    try:
        if command == "profile":
            do_profile(app)
        elif command == "skills":
            do_skills(app)
        elif command == "history":
            do_history(app)
        elif command == "rename":
            do_rename(app, args.name)
        elif command == "attribute":
            if args.attr_command == "add":
                do_attribute_add(app, args.name)
            elif args.attr_command == "delete":
                do_attribute_delete(app, args.attribute_id)
            else:
                do_profile(app)
        elif command == "skill":
            if args.skill_command == "add":
                do_skill_add(
                    app, args.name, category=args.category,
                    image_url=args.image, attribute_ids=args.attributes,
                )
            elif args.skill_command == "delete":
                do_skill_delete(app, args.skill_id)
            else:
                do_skills(app)
        elif command == "timer":
            timer_cmd = getattr(args, "timer_command", None)
            if timer_cmd == "start":
                do_timer_run(app, skill_id=args.skill, attribute_ids=args.attributes)
            elif timer_cmd == "stop":
                do_timer_stop(app)
            elif timer_cmd == "reset":
                do_timer_reset(app)
            else:
                do_timer_status(app)
        elif command == "project":
            do_project(args.minutes)
        elif command == "settings":
            audio = None if args.audio is None else args.audio == "on"
            do_settings(app, audio_enabled=audio, volume=args.volume)
    finally:
        app.close()


def _xp_dict(xp: SessionXP) -> dict:
    return {
        "base_focus_xp": xp.breakdown.base_focus_xp,
        "streak_bonus_xp": xp.breakdown.streak_bonus_xp,
        "accelerated_bonus_xp": xp.breakdown.accelerated_bonus_xp,
        "bonus_xp": xp.bonus_xp,
        "total_xp": xp.total_xp,
    }


def do_profile(app: AppState) -> dict:
    """Show the profile with every attribute's level and XP bar."""
    user = app.user
    data = {
        "name": user.name,
        "attributes": [
            {
                "id": a.id,
                "name": a.name,
                "level": a.level,
                "current_xp": a.current_xp,
                "xp_to_next_level": a.xp_to_next_level,
            }
            for a in user.attributes
        ],
        "total_hours": app.total_focus_hours(),
        "total_xp": app.total_xp_earned(),
        "session_count": len(user.sessions),
        "skill_count": len(user.skills),
    }
    print_profile(data)
    return data


def _skill_rows(app: AppState) -> list[dict]:
    rows = []
    for skill in app.user.skills:
        progress = get_tier_progress(skill.total_hours)
        names = [a.name for a in (app.find_attribute(i) for i in skill.attribute_ids) if a]
        rows.append({
            "id": skill.id,
            "name": skill.name,
            "tier": skill.tier.value,
            "total_hours": skill.total_hours,
            "progress": (
                {"current": progress.current, "target": progress.target,
                 "percentage": progress.percentage}
                if progress else None
            ),
            "attribute_names": names,
        })
    return rows


def do_skills(app: AppState) -> list[dict]:
    rows = _skill_rows(app)
    print_skills(rows)
    return rows


def do_history(app: AppState) -> list[dict]:
    """Show completed sessions, newest first."""
    rows = []
    for session in reversed(app.user.sessions):
        skill = app.find_skill(session.skill_id) if session.skill_id else None
        rows.append({
            "id": session.id,
            "start": session.start_time.astimezone().strftime("%Y-%m-%d %H:%M"),
            "focus_minutes": session.focus_minutes_total,
            "blocks": session.completed_focus_blocks,
            "total_xp": session.total_xp,
            "skill_name": skill.name if skill else None,
        })
    print_history(rows)
    return rows


def do_rename(app: AppState, name: str) -> dict:
    app.update_profile(name=name)
    console.print(f"[green]Name changed to {name}[/]")
    return {"ok": True, "name": name}


def do_attribute_add(app: AppState, name: str) -> dict:
    attr = app.create_attribute(name)
    console.print(f"[green]Created attribute {attr.name} ({attr.id})[/]")
    return {"ok": True, "id": attr.id, "name": attr.name}


def do_attribute_delete(app: AppState, attribute_id: str) -> dict:
    if not app.delete_attribute(attribute_id):
        console.print(f"[yellow]Attribute {attribute_id} was not deleted[/]")
        return {"ok": False, "id": attribute_id}
    console.print(f"[green]Deleted attribute {attribute_id}[/]")
    return {"ok": True, "id": attribute_id}


def do_skill_add(
    app: AppState,
    name: str,
    category: str | None = None,
    image_url: str | None = None,
    attribute_ids: list[str] | None = None,
) -> dict:
    """Create a skill linked to existing attributes. Unknown attribute ids are dropped."""
    image = image_url or (image_for_category(category) if category else "")
    linked = [i for i in (attribute_ids or []) if app.find_attribute(i)]
    dropped = sorted(set(attribute_ids or []) - set(linked))
    if dropped:
        console.print(f"[yellow]Ignoring unknown attributes: {', '.join(dropped)}[/]")
    skill = app.create_skill(name, image_url=image, attribute_ids=linked)
    console.print(f"[green]Created skill {skill.name} ({skill.id})[/]")
    return {"ok": True, "id": skill.id, "name": skill.name, "attribute_ids": linked, "image_url": image}


def do_skill_delete(app: AppState, skill_id: str) -> dict:
    if not app.delete_skill(skill_id):
        console.print(f"[red]No skill with id {skill_id}[/]")
        return {"ok": False, "id": skill_id}
    console.print(f"[green]Deleted skill {skill_id}[/]")
    return {"ok": True, "id": skill_id}


def _timer_view(app: AppState) -> dict:
    state = app.timer.get_state()
    return {
        "phase": state.phase.value,
        "time": format_time(state.time_remaining),
        "time_remaining": state.time_remaining,
        "focus_minutes": state.total_focus_minutes,
        "streak_hours": state.current_streak,
        "blocks": state.focus_blocks_completed,
        "projected_xp": project_session_xp(state.total_focus_minutes).total_xp,
        "is_running": state.is_running,
        "is_paused": state.is_paused,
        "session_open": state.session_start_time is not None,
    }


def do_timer_status(app: AppState) -> dict:
    view = _timer_view(app)
    console.print(render_timer(view))
    return view


def do_timer_run(
    app: AppState,
    skill_id: str | None = None,
    attribute_ids: list[str] | None = None,
    poll_interval: float = 0.25,
) -> dict:
    """Run the timer in the foreground until Ctrl+C, then stop and award XP.

    A session left open by an earlier run is resumed with its selection
    unless a new one is given.
    """
    if skill_id and app.find_skill(skill_id) is None:
        console.print(f"[red]No skill with id {skill_id}[/]")
        return {"ok": False, "reason": "unknown_skill"}

    state = app.timer.get_state()
    if state.session_start_time is None or skill_id or attribute_ids:
        app.set_timer_selection(skill_id, attribute_ids)

    app.timer.start()
    try:
        with Live(render_timer(_timer_view(app)), console=console, refresh_per_second=4) as live:
            while True:
                time.sleep(poll_interval)
                live.update(render_timer(_timer_view(app)))
    except KeyboardInterrupt:
        logger.info("Timer interrupted by user")
    return do_timer_stop(app)


def _award_dict(app: AppState, award: SessionAward) -> dict:
    session = award.session
    skill = app.find_skill(session.skill_id) if session.skill_id else None
    names = [a.name for a in (app.find_attribute(i) for i in session.attribute_ids_awarded_to) if a]
    return {
        "ok": True,
        "session_id": session.id,
        "focus_minutes": session.focus_minutes_total,
        "blocks": session.completed_focus_blocks,
        **_xp_dict(award.xp),
        "skill_name": skill.name if skill else None,
        "skill_hours": award.skill_hours,
        "new_tier": award.new_tier.value if award.new_tier else None,
        "attribute_names": names,
        "level_ups": [
            {"name": lu.name, "old_level": lu.old_level, "new_level": lu.new_level}
            for lu in award.level_ups
        ],
    }


def do_timer_stop(app: AppState) -> dict:
    """Stop the open session. The completion observer awards the XP."""
    session = app.timer.stop()
    if session is None or app.last_award is None:
        print_nothing_to_report()
        return {"ok": False, "reason": "no_session"}

    result = _award_dict(app, app.last_award)
    print_session_summary(result)
    return result


def do_timer_reset(app: AppState) -> dict:
    app.timer.reset()
    console.print("[yellow]Timer reset. The open session was discarded.[/]")
    return {"ok": True}


def do_project(minutes: float) -> dict:
    """Preview the XP an unbroken session of `minutes` would earn."""
    xp = project_session_xp(minutes)
    result = {"focus_minutes": minutes, **_xp_dict(xp)}
    print_xp_breakdown(result, title=f"XP for {minutes:g} minutes")
    return result


def do_settings(
    app: AppState, audio_enabled: bool | None = None, volume: float | None = None
) -> dict:
    if audio_enabled is not None or volume is not None:
        app.update_settings(audio_enabled=audio_enabled, volume=volume)
    result = {"audio_enabled": app.settings.audio_enabled, "volume": app.settings.volume}
    print_settings(result)
    return result


def do_config(db_path: str | None = None, config_path: Path | None = None) -> dict:
    """Show where data and logs live, optionally moving the database."""
    if db_path:
        set_db_path(Path(db_path).expanduser().resolve(), config_path)
    result = {
        "db_path": str(get_db_path(config_path) or DEFAULT_DB_PATH),
        "log_file": str(get_log_file(config_path)),
        "log_level": logging.getLevelName(get_log_level(config_path)),
    }
    print_config(result)
    return result
