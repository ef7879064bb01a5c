"""Interactive CLI application."""
import argparse
import json
import logging
import uuid
from pathlib import Path

import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from study_planner.context import PlannerContext, open_context
from study_planner.courses import list_courses
from study_planner.daily_log import get_unified_progress, save_daily_log
from study_planner.dashboard import get_mastery_color, get_mastery_label, get_progress_summary, get_weakest_topics
from study_planner.db import DEFAULT_DB_PATH
from study_planner.mock_tests import get_mock_tests, save_mock_test
from study_planner.models import (
    DailyGoals, DailyLog, HealthMetrics, MockTestLog, StudySession, SyllabusSubject, TopicPerformance, utcnow,
)
from study_planner.notes import import_note
from study_planner.progress import record_study_time
from study_planner.revision import build_review_items, get_revision_queue, mark_reviewed
from study_planner.syllabus import find_topic, get_syllabus, save_syllabus
from study_planner.users import create_user, get_user, update_user

console = Console()

PRIORITY_STYLES = {"overdue": "red", "due_today": "yellow", "due_soon": "cyan", "scheduled": "dim"}


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def show_welcome(ctx: PlannerContext, user_id: str):
    user = get_user(ctx, user_id)
    course = user.current_course_id if user else None
    console.print(Panel(
        "[bold]Study Planner[/bold]\n"
        + (f"[dim]Course: {course}[/dim]" if course else "[dim]No course selected. Use 'course' to pick one.[/dim]"),
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("queue", "Topics due for revision"),
        ("review", "Review flagged and due topics"),
        ("log", "Log today's study"),
        ("progress", "Mastery, streak and revision stats"),
        ("mock", "Record a mock test result"),
        ("syllabus", "Load a syllabus from a JSON/YAML file"),
        ("import", "Add study notes"),
        ("course", "Switch course"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def cmd_queue(ctx: PlannerContext, user_id: str):
    user = get_user(ctx, user_id)
    items = get_revision_queue(ctx, user_id, user.current_course_id if user else None)
    if not items:
        console.print("[green]Nothing due for revision. Nice work![/green]")
        return
    table = Table(title="Revision Queue")
    table.add_column("Topic", style="cyan")
    table.add_column("Subject")
    table.add_column("Tier", justify="right")
    table.add_column("Mastery", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Priority")
    table.add_column("Est. min", justify="right")
    for item in items:
        style = PRIORITY_STYLES[item.priority]
        table.add_row(
            item.topic_name, item.subject_name, str(item.tier), f"{item.mastery_score:.0f}",
            str(item.days_since_last_revision), f"[{style}]{item.priority}[/{style}]",
            f"{item.estimated_time:.0f}",
        )
    console.print(table)


def cmd_review(ctx: PlannerContext, user_id: str):
    user = get_user(ctx, user_id)
    course_id = user.current_course_id if user else None
    items = [i for i in build_review_items(ctx, user_id, course_id) if i.type == "topic"]
    if not items:
        console.print("[green]No topics flagged or due.[/green]")
        return
    console.print(f"\n[bold]Review:[/bold] {len(items)} topics\n")
    for item in items:
        flag = " [yellow](flagged)[/yellow]" if item.needs_review else ""
        console.print(f"[bold]{item.name}[/bold] [dim]{item.subject_name}[/dim]{flag}")
        if Confirm.ask("Mark as reviewed?", default=True):
            updated = mark_reviewed(ctx, user_id, item.id, course_id)
            console.print(f"[green]Next revision {updated.next_revision:%Y-%m-%d}[/green]\n")


def cmd_log(ctx: PlannerContext, user_id: str):
    user = get_user(ctx, user_id)
    course_id = user.current_course_id if user else None
    syllabus = get_syllabus(ctx, user_id, course_id)
    # Names the log and drives the streak.
    now = utcnow()
    sessions = []
    console.print("\n[bold]Daily Log[/bold] [dim](blank topic id to finish)[/dim]")
    while True:
        topic_id = Prompt.ask("Topic id", default="").strip()
        if not topic_id:
            break
        subject, topic = find_topic(syllabus, topic_id)
        if topic is None:
            console.print(f"[yellow]Unknown topic {topic_id}, logging anyway.[/yellow]")
        minutes = IntPrompt.ask("Minutes", default=30)
        method = Prompt.ask("Method", choices=["reading", "notes", "practice", "revision", "mock_test"],
                            default="reading")
        effectiveness = IntPrompt.ask("Effectiveness (1-5)", choices=["1", "2", "3", "4", "5"], default=3)
        sessions.append(StudySession(topic_id=topic_id, subject_id=subject.id if subject else "",
                                     minutes=minutes, method=method, effectiveness=effectiveness))
        record_study_time(ctx, user_id, topic_id, minutes, course_id, now=now)

    energy = IntPrompt.ask("Energy (1-10)", default=5)
    sleep = IntPrompt.ask("Hours slept", default=7)
    target = (user.preferences.get("daily_study_goal_minutes") if user else None) or 0
    actual = sum(s.minutes for s in sessions)
    log = DailyLog(
        date=now.date().isoformat(),
        health=HealthMetrics(energy=energy, sleep_hours=sleep),
        studied_topics=sessions,
        goals=DailyGoals(target_minutes=target, actual_minutes=actual, completed=actual >= target),
        note=Prompt.ask("Note", default=""),
    )
    save_daily_log(ctx, user_id, log, now=now)
    stats = get_unified_progress(ctx, user_id)
    console.print(f"[green]Logged {actual} minutes.[/green] Streak: [bold]{stats.current_streak}[/bold] days")


def cmd_progress(ctx: PlannerContext, user_id: str):
    user = get_user(ctx, user_id)
    course_id = user.current_course_id if user else None
    summary = get_progress_summary(ctx, user_id, course_id)
    score = summary["average_mastery"]
    color = get_mastery_color(score)

    bar_filled = int(score / 5)
    bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
    console.print(Panel(f"[bold]{course_id or 'No course'}[/bold]", title="Progress", border_style="blue"))
    console.print(f"\n  Average Mastery: [bold]{score}%[/bold] {bar} [{color}]{get_mastery_label(score)}[/{color}]\n")
    console.print(f"  Topics: [bold]{summary['topics_tracked']}[/bold]  |  "
                  f"Mastered: [bold]{summary['mastered_topics']}[/bold]  |  "
                  f"Due: [bold]{summary['due_for_revision']}[/bold]  |  "
                  f"Overdue: [bold]{summary['overdue']}[/bold]")
    console.print(f"  Streak: [bold]{summary['current_streak']}[/bold] (best {summary['longest_streak']})  |  "
                  f"Consistency: [bold]{summary['consistency_rating']}%[/bold]  |  "
                  f"Time invested: [bold]{summary['total_time_invested']}[/bold] min")

    weakest = get_weakest_topics(ctx, user_id, course_id)
    if weakest:
        table = Table(title="Weakest Topics")
        table.add_column("Topic", style="cyan")
        table.add_column("Mastery", justify="right")
        table.add_column("Status")
        for w in weakest:
            c = get_mastery_color(w["mastery_score"])
            table.add_row(w["topic_id"], f"{w['mastery_score']:.0f}", f"[{c}]{w['label']}[/{c}]")
        console.print(table)


def cmd_mock(ctx: PlannerContext, user_id: str):
    user = get_user(ctx, user_id)
    course_id = user.current_course_id if user else None
    test_name = Prompt.ask("Test name", default="Mock test")
    platform = Prompt.ask("Platform", default="")
    performance = []
    console.print("[dim]Per-topic accuracy (blank topic id to finish)[/dim]")
    while True:
        topic_id = Prompt.ask("Topic id", default="").strip()
        if not topic_id:
            break
        accuracy = IntPrompt.ask("Accuracy %", default=50)
        performance.append(TopicPerformance(topic_id=topic_id, accuracy=max(0, min(100, accuracy)) / 100))

    test = MockTestLog(id=uuid.uuid4().hex, date=utcnow(), test_name=test_name, platform=platform,
                       topic_performance=performance)
    save_mock_test(ctx, user_id, test, course_id)
    console.print(f"[green]Saved {test_name} ({len(performance)} topics).[/green]")

    recent = get_mock_tests(ctx, user_id, limit=5, course_id=course_id)
    table = Table(title="Recent Mock Tests")
    table.add_column("Date")
    table.add_column("Test", style="cyan")
    table.add_column("Topics", justify="right")
    for t in recent:
        table.add_row(f"{t.date:%Y-%m-%d}", t.test_name, str(len(t.topic_performance)))
    console.print(table)


def load_syllabus_file(file_path: str) -> list[SyllabusSubject]:
    """Parse a syllabus file: a list of subjects, or a mapping with a ``subjects`` key."""
    path = Path(file_path)
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(path.read_text())
    else:
        data = json.loads(path.read_text())
    if isinstance(data, dict):
        data = data.get("subjects", [])
    return [SyllabusSubject.from_dict(s) for s in data]


def cmd_syllabus(ctx: PlannerContext, user_id: str):
    file_path = Prompt.ask("Syllabus file")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    subjects = load_syllabus_file(file_path)
    course_id = save_syllabus(ctx, user_id, subjects)
    topics = sum(len(s.topics) for s in subjects)
    console.print(f"[green]Saved {len(subjects)} subjects ({topics} topics) to {course_id}[/green]")


def cmd_import(ctx: PlannerContext, user_id: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    user = get_user(ctx, user_id)
    note = import_note(ctx, user_id, file_path, user.current_course_id if user else None)
    topic_msg = f"topic {note.topic_id}" if note.topic_id else "unassigned"
    console.print(f"[green]Imported {note.filename} ({note.length} chars) → {topic_msg}[/green]")


def cmd_course(ctx: PlannerContext, user_id: str):
    courses = list_courses()
    for c in courses:
        console.print(f"  [cyan]{c['id']}[/cyan]  {c['name']}")
    course_id = Prompt.ask("Course", choices=[c["id"] for c in courses])
    update_user(ctx, user_id, {"current_course_id": course_id})
    console.print(f"[green]Switched to {course_id}[/green]")


COMMANDS = {
    "queue": cmd_queue,
    "review": cmd_review,
    "log": cmd_log,
    "progress": cmd_progress,
    "mock": cmd_mock,
    "syllabus": cmd_syllabus,
    "import": cmd_import,
    "course": cmd_course,
}


def main(argv=None):
    parser = argparse.ArgumentParser(prog="study-planner")
    parser.add_argument("--db", default=DEFAULT_DB_PATH, help="database file")
    parser.add_argument("--user", default="local", help="user id")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    ctx = open_context(args.db)
    if get_user(ctx, args.user) is None:
        console.print("[dim]Setting up for first use...[/dim]")
        create_user(ctx, args.user, display_name=args.user)

    show_welcome(ctx, args.user)

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="queue").strip().lower()
        try:
            if choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck with your preparation![/dim]")
                break
            command = COMMANDS.get(choice)
            if command is None:
                console.print("[red]Unknown command. Try again.[/red]")
                continue
            command(ctx, args.user)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logging.getLogger(__name__).debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
