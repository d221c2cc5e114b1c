#!/usr/bin/env python3
"""
Tutorbook command-line client.

Talks to the booking platform API with the session cookie from
TUTORBOOK_SESSION_COOKIE (or a .env file).

Usage:
    tutorbook [--log-level LEVEL] <group> <command> [options]

Examples:
    # Lessons with free seats on a day
    tutorbook lessons list --date 2025-12-01 --available

    # Book a lesson and check the balance
    tutorbook bookings book 0f8c1d2e-...
    tutorbook credits balance

    # Export the credit history to CSV
    tutorbook credits history --csv

    # Preview a template for a week, then apply it
    tutorbook templates preview 5b7e... --week 2025-12-01
    tutorbook templates apply 5b7e... --week 2025-12-01 --yes
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List

from .api.bookings import BookingsAPI
from .api.credits import CreditsAPI
from .api.errors import APIError
from .api.homework import HomeworkAPI
from .api.lessons import LessonsAPI
from .api.payments import PaymentsAPI
from .api.telegram import TelegramAPI
from .api.templates import TemplatesAPI
from .models.payment import credits_price
from .services.autosave import AutosaverFactory
from .services.bookings import BookingService
from .services.broadcasts import BroadcastStore
from .services.eligibility import format_credits
from .services.notifications import Notification, NotificationCenter, NotificationLevel
from .services.templates import TemplateApplyService, TemplatePreview
from .utils.config import Config
from .utils.dates import format_date_time, format_duration, get_duration, get_week_start
from .utils.di_container import DIContainer, configure_default_services
from .utils.file_utils import generate_filename, records_to_dataframe, save_csv, save_json
from .utils.logger import setup_logger


HISTORY_COLUMNS = ["created_at", "amount", "balance_after", "reason", "user_id", "booking_id"]
BOOKING_COLUMNS = ["id", "lesson_id", "status", "start_time", "end_time", "subject",
                   "teacher_name", "booked_at", "cancelled_at"]

_MARKS = {
    NotificationLevel.SUCCESS: "✓",
    NotificationLevel.INFO: "i",
    NotificationLevel.WARNING: "!",
    NotificationLevel.ERROR: "✗",
}


def print_notification(notification: Notification):
    print(f"{_MARKS[notification.level]} {notification.message}")


def parse_arguments(argv: List[str] = None):
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog="tutorbook",
        description="Command-line client for the tutoring booking platform",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: LOG_LEVEL or INFO)"
    )

    groups = parser.add_subparsers(dest="group", required=True)

    # lessons
    lessons = groups.add_parser("lessons", help="Browse lessons").add_subparsers(
        dest="command", required=True)
    p = lessons.add_parser("list", help="List lessons")
    p.add_argument("--teacher-id")
    p.add_argument("--date", help="Day in YYYY-MM-DD format")
    p.add_argument("--available", action="store_true", help="Only lessons with free seats")
    p.add_argument("--mine", action="store_true", help="Only my lessons")
    p = lessons.add_parser("show", help="Show a lesson with its students")
    p.add_argument("lesson_id")
    p = lessons.add_parser("homework-text", help="Save the text of a homework file")
    p.add_argument("lesson_id")
    p.add_argument("file_id")
    p.add_argument("text")

    # bookings
    bookings = groups.add_parser("bookings", help="Manage bookings").add_subparsers(
        dest="command", required=True)
    p = bookings.add_parser("list", help="List my bookings")
    p.add_argument("--status", choices=["active", "cancelled"])
    p.add_argument("--csv", action="store_true", help="Export to CSV in OUTPUT_DIR/exports")
    p = bookings.add_parser("book", help="Book a lesson")
    p.add_argument("lesson_id")
    p = bookings.add_parser("cancel", help="Cancel a booking")
    p.add_argument("booking_id")

    # credits
    credits = groups.add_parser("credits", help="Credits and history").add_subparsers(
        dest="command", required=True)
    credits.add_parser("balance", help="Show my balance")
    p = credits.add_parser("history", help="Transaction history")
    p.add_argument("--user-id", help="History of another user (admin)")
    p.add_argument("--start-date")
    p.add_argument("--end-date")
    p.add_argument("--limit", type=int, default=50)
    p.add_argument("--csv", action="store_true", help="Export to CSV in OUTPUT_DIR/exports")
    for name, verb in (("add", "Add credits to"), ("deduct", "Deduct credits from")):
        p = credits.add_parser(name, help=f"{verb} a user (admin)")
        p.add_argument("user_id")
        p.add_argument("amount", type=int)
        p.add_argument("--reason", default="")

    # templates
    templates = groups.add_parser("templates", help="Weekly templates").add_subparsers(
        dest="command", required=True)
    templates.add_parser("list", help="List templates")
    for name, text in (("preview", "Preview applying a template"),
                       ("apply", "Apply a template to a week"),
                       ("rollback", "Undo a template application")):
        p = templates.add_parser(name, help=text)
        p.add_argument("template_id")
        p.add_argument("--week", required=True, help="Any day of the target week (YYYY-MM-DD)")
        if name == "preview":
            p.add_argument("--csv", action="store_true", help="Export the preview to CSV")
        if name == "apply":
            p.add_argument("--yes", action="store_true", help="Skip confirmation")

    # broadcasts
    broadcasts = groups.add_parser("broadcasts", help="Telegram broadcasts").add_subparsers(
        dest="command", required=True)
    broadcasts.add_parser("lists", help="List broadcast lists")
    p = broadcasts.add_parser("send", help="Send a broadcast")
    p.add_argument("--message", required=True)
    p.add_argument("--list-id")
    p.add_argument("--user-id", action="append", dest="user_ids")
    p = broadcasts.add_parser("history", help="Broadcast history")
    p.add_argument("--limit", type=int, default=20)
    p.add_argument("--offset", type=int, default=0)
    p = broadcasts.add_parser("cancel", help="Cancel a pending broadcast")
    p.add_argument("broadcast_id")

    # telegram
    telegram = groups.add_parser("telegram", help="Telegram link").add_subparsers(
        dest="command", required=True)
    telegram.add_parser("status", help="Show my Telegram link")
    telegram.add_parser("link-token", help="Get a link token for the bot")

    # payments
    payments = groups.add_parser("payments", help="Buy credits").add_subparsers(
        dest="command", required=True)
    p = payments.add_parser("create", help="Start a credit purchase")
    p.add_argument("credits", type=int)

    return parser.parse_args(argv)


def display_lessons(lessons: List[Dict[str, Any]]):
    print("\n" + "=" * 60)
    print(f"LESSONS ({len(lessons)})")
    print("=" * 60)
    for idx, lesson in enumerate(lessons, 1):
        seats = f"{lesson.get('current_students', 0)}/{lesson.get('max_students', 0)}"
        print(
            f"{idx:2d}. {format_date_time(lesson['start_time'])} | "
            f"{(lesson.get('subject') or '-'):20s} | "
            f"{(lesson.get('teacher_name') or '-'):20s} | {seats:5s} | {lesson.get('id')}"
        )
    print("=" * 60)


def display_preview(preview: TemplatePreview):
    print("\n" + "=" * 60)
    print(f"TEMPLATE PREVIEW: {preview.template_name}")
    print("=" * 60)
    print(f"Week starting:            {preview.week_start_date}")
    print(f"Lessons in template:      {preview.lessons_count}")
    print(f"Students:                 {len(preview.students)}")
    print("-" * 60)
    for student in preview.students:
        print(f"  {student.name:30s} | charge {format_credits(student.credits_deducted):12s} | "
              f"already booked {student.existing_bookings}")
    if preview.credit_issues:
        print("-" * 60)
        print("Insufficient credits:")
        for issue in preview.credit_issues:
            note = " (balance unavailable)" if issue.fetch_error else ""
            print(f"  ✗ {issue.describe()}{note}")
    print("=" * 60)


def confirm(question: str) -> bool:
    response = input(f"{question} (y/n): ").strip().lower()
    return response in ['y', 'yes']


def export_csv(records: List[Dict[str, Any]], prefix: str, output_dir: Path,
               columns: List[str] = None) -> int:
    path = output_dir / "exports" / generate_filename(prefix, "csv")
    if not save_csv(records_to_dataframe(records, columns), path):
        print(f"ERROR: Failed to write {path}")
        return 1
    print(f"✓ Saved {len(records)} rows to: {path}")
    return 0


# ---- command handlers ----

def lessons_list(args, container: DIContainer) -> int:
    api: LessonsAPI = container.resolve(LessonsAPI)
    if args.mine:
        lessons = api.get_my_lessons()
    else:
        lessons = api.get_lessons(teacher_id=args.teacher_id, date=args.date,
                                  available=True if args.available else None)
    if not lessons:
        print("No lessons found.")
        return 0
    display_lessons(lessons)
    return 0


def lessons_show(args, container: DIContainer) -> int:
    api: LessonsAPI = container.resolve(LessonsAPI)
    lesson = api.get_lesson(args.lesson_id)
    students = api.get_lesson_students(args.lesson_id).get("students") or []

    minutes = get_duration(lesson["start_time"], lesson["end_time"])
    print(f"\n{lesson.get('subject') or 'Lesson'} ({lesson.get('id')})")
    print(f"  When:      {format_date_time(lesson['start_time'])} ({format_duration(minutes)})")
    print(f"  Teacher:   {lesson.get('teacher_name') or lesson.get('teacher_id')}")
    print(f"  Seats:     {lesson.get('current_students', 0)}/{lesson.get('max_students', 0)}")
    print(f"  Cost:      {format_credits(lesson.get('credits_cost') or 1)}")
    for student in students:
        print(f"    - {student.get('student_name') or student.get('student_id')}")
    return 0


def lessons_homework_text(args, container: DIContainer) -> int:
    homework: HomeworkAPI = container.resolve(HomeworkAPI)
    saver = container.resolve(AutosaverFactory).create(
        lambda text: homework.update_homework_text(args.lesson_id, args.file_id, text)
    )
    try:
        saved = saver.save_now(args.text)
    finally:
        saver.close()
    if not saved:
        print("✗ Homework text was not saved")
        return 1
    print("✓ Homework text saved")
    return 0


def bookings_list(args, container: DIContainer) -> int:
    bookings = container.resolve(BookingsAPI).get_my_bookings()
    if args.status:
        bookings = [b for b in bookings if b.get("status") == args.status]

    if args.csv:
        config: Config = container.resolve(Config)
        return export_csv(bookings, "bookings", config.output_dir, BOOKING_COLUMNS)

    if not bookings:
        print("No bookings found.")
        return 0
    for idx, booking in enumerate(bookings, 1):
        start = booking.get("start_time") or (booking.get("lesson") or {}).get("start_time")
        print(f"{idx:2d}. {format_date_time(start)} | {booking.get('status', '-'):9s} | "
              f"{booking.get('id')}")
    return 0


def bookings_book(args, container: DIContainer) -> int:
    lesson = container.resolve(LessonsAPI).get_lesson(args.lesson_id)
    result = container.resolve(BookingService).book_lesson(lesson)
    return 0 if result.is_success else 1


def bookings_cancel(args, container: DIContainer) -> int:
    result = container.resolve(BookingService).cancel_booking(args.booking_id)
    return 0 if result.is_success else 1


def credits_balance(args, container: DIContainer) -> int:
    balance = container.resolve(CreditsAPI).get_credits()["balance"]
    print(f"Balance: {format_credits(balance)}")
    return 0


def credits_history(args, container: DIContainer) -> int:
    api: CreditsAPI = container.resolve(CreditsAPI)
    filters = {"start_date": args.start_date, "end_date": args.end_date, "limit": args.limit}
    if args.user_id:
        history = api.get_history(dict(filters, user_id=args.user_id))
    else:
        history = api.get_my_history(filters)

    if args.csv:
        config: Config = container.resolve(Config)
        return export_csv(history, "credit_history", config.output_dir, HISTORY_COLUMNS)

    if not history:
        print("No transactions found.")
        return 0
    for tx in history:
        amount = tx.get("amount", 0)
        print(f"{format_date_time(tx['created_at'])} | {amount:+} | {tx.get('reason') or ''}")
    return 0


def credits_adjust(args, container: DIContainer) -> int:
    if args.amount <= 0:
        print("ERROR: amount must be positive")
        return 1
    api: CreditsAPI = container.resolve(CreditsAPI)
    if args.command == "add":
        result = api.add_credits(args.user_id, args.amount, args.reason)
    else:
        result = api.deduct_credits(args.user_id, args.amount, args.reason)
    balance = result.get("balance") if isinstance(result, dict) else None
    print(f"✓ Done. New balance: {balance if balance is not None else 'unknown'}")
    return 0


def templates_list(args, container: DIContainer) -> int:
    templates = container.resolve(TemplatesAPI).get_templates()
    if not templates:
        print("No templates found.")
        return 0
    for template in templates:
        count = template.get("lesson_count", len(template.get("lessons") or []))
        print(f"{template.get('name', '-'):30s} | {count:3d} lessons | {template.get('id')}")
    return 0


def templates_preview(args, container: DIContainer) -> int:
    service: TemplateApplyService = container.resolve(TemplateApplyService)
    result = service.preview(args.template_id, args.week)
    if result.is_failure:
        print(f"ERROR: {result.message}")
        return 1

    preview = result.value
    display_preview(preview)
    if args.csv:
        config: Config = container.resolve(Config)
        return export_csv(preview.to_records(), "template_preview", config.output_dir)
    return 0


def templates_apply(args, container: DIContainer) -> int:
    service: TemplateApplyService = container.resolve(TemplateApplyService)

    print(f"\n[1/2] Checking template for week of {get_week_start(args.week)}...")
    previewed = service.preview(args.template_id, args.week)
    if previewed.is_failure:
        print(f"ERROR: {previewed.message}")
        return 1
    display_preview(previewed.value)

    if not args.yes and previewed.value.can_apply and not confirm("Apply template?"):
        print("Cancelled.")
        return 0

    print("\n[2/2] Applying template...")
    result = service.apply(args.template_id, args.week, preview=previewed.value)
    if result.is_failure:
        return 1

    created = result.value.get("created_lessons_count") if isinstance(result.value, dict) else None
    if created is not None:
        print(f"  Lessons created: {created}")

    config: Config = container.resolve(Config)
    report_path = config.output_dir / "exports" / generate_filename("template_apply", "json")
    report = {
        "template_id": args.template_id,
        "week_start_date": previewed.value.week_start_date,
        "students": previewed.value.to_records(),
        "result": result.value,
    }
    if save_json(report, report_path):
        print(f"Report saved to: {report_path}")
    return 0


def templates_rollback(args, container: DIContainer) -> int:
    result = container.resolve(TemplateApplyService).rollback(args.template_id, args.week)
    return 0 if result.is_success else 1


def broadcasts_lists(args, container: DIContainer) -> int:
    store: BroadcastStore = container.resolve(BroadcastStore)
    try:
        lists = store.fetch_broadcast_lists() or []
    finally:
        store.close()
    for lst in lists:
        print(f"{lst.get('name', '-'):30s} | {len(lst.get('user_ids') or []):3d} users | "
              f"{lst.get('id')}")
    if not lists:
        print("No broadcast lists.")
    return 0


def broadcasts_send(args, container: DIContainer) -> int:
    if not args.list_id and not args.user_ids:
        print("ERROR: Use --list-id or --user-id")
        return 1
    store: BroadcastStore = container.resolve(BroadcastStore)
    try:
        broadcast = store.send_broadcast(args.message, args.list_id, args.user_ids)
    finally:
        store.close()
    if isinstance(broadcast, dict) and broadcast.get("id"):
        print(f"  Broadcast id: {broadcast['id']}")
    return 0


def broadcasts_history(args, container: DIContainer) -> int:
    store: BroadcastStore = container.resolve(BroadcastStore)
    try:
        store.fetch_broadcasts(args.limit, args.offset)
    finally:
        store.close()
    print(f"Broadcasts: {len(store.broadcasts)} of {store.total_broadcasts}")
    for broadcast in store.broadcasts:
        print(f"  {broadcast.get('status', '-'):10s} | sent {broadcast.get('sent_count', 0):4d} | "
              f"failed {broadcast.get('failed_count', 0):4d} | {broadcast.get('id')}")
    return 0


def broadcasts_cancel(args, container: DIContainer) -> int:
    store: BroadcastStore = container.resolve(BroadcastStore)
    try:
        store.cancel_broadcast(args.broadcast_id)
    finally:
        store.close()
    return 0


def telegram_status(args, container: DIContainer) -> int:
    link = container.resolve(TelegramAPI).get_my_link()
    if not link:
        print("Telegram is not linked.")
        return 0
    print(f"Linked as @{link.get('username') or link.get('telegram_id')}, "
          f"subscribed: {'yes' if link.get('subscribed') else 'no'}")
    return 0


def telegram_link_token(args, container: DIContainer) -> int:
    token = container.resolve(TelegramAPI).generate_link_token()
    print(f"Open https://t.me/{token['bot_username']}?start={token['token']}")
    return 0


def payments_create(args, container: DIContainer) -> int:
    print(f"Buying {format_credits(args.credits)} for {credits_price(args.credits)} RUB")
    payment = container.resolve(PaymentsAPI).create_payment(args.credits)
    print(f"✓ Complete the payment at: {payment['confirmation_url']}")
    return 0


COMMANDS: Dict[tuple, Callable[[Any, DIContainer], int]] = {
    ("lessons", "list"): lessons_list,
    ("lessons", "show"): lessons_show,
    ("lessons", "homework-text"): lessons_homework_text,
    ("bookings", "list"): bookings_list,
    ("bookings", "book"): bookings_book,
    ("bookings", "cancel"): bookings_cancel,
    ("credits", "balance"): credits_balance,
    ("credits", "history"): credits_history,
    ("credits", "add"): credits_adjust,
    ("credits", "deduct"): credits_adjust,
    ("templates", "list"): templates_list,
    ("templates", "preview"): templates_preview,
    ("templates", "apply"): templates_apply,
    ("templates", "rollback"): templates_rollback,
    ("broadcasts", "lists"): broadcasts_lists,
    ("broadcasts", "send"): broadcasts_send,
    ("broadcasts", "history"): broadcasts_history,
    ("broadcasts", "cancel"): broadcasts_cancel,
    ("telegram", "status"): telegram_status,
    ("telegram", "link-token"): telegram_link_token,
    ("payments", "create"): payments_create,
}


def main(argv: List[str] = None, container: DIContainer = None) -> int:
    """Main execution function."""
    args = parse_arguments(argv)

    if container is None:
        container = DIContainer()
        configure_default_services(container)
    config: Config = container.resolve(Config)

    logger = setup_logger(
        "tutorbook",
        level=getattr(logging, args.log_level or config.log_level, logging.INFO)
    )
    container.resolve(NotificationCenter).listener = print_notification

    try:
        logger.info("Validating configuration")
        config.validate()

        if not config.session_cookie:
            logger.warning("TUTORBOOK_SESSION_COOKIE is not set, requests will be anonymous")

        handler = COMMANDS[(args.group, args.command)]
        return handler(args, container)

    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        logger.info("Execution interrupted by user")
        return 130

    except APIError as e:
        logger.error(f"API error ({e.status}): {e.message}")
        print(f"ERROR: {e.message}")
        return 1

    except ValueError as e:
        logger.error(f"Invalid input: {e}")
        print(f"ERROR: {e}")
        return 1

    finally:
        container.clear()


if __name__ == "__main__":
    sys.exit(main())
