"""Wochenplan: Haupt-CLI.

Verwendung:
  python main.py config init                      Standard-Konfiguration anlegen
  python main.py config show                      Konfiguration anzeigen
  python main.py generate                         Testdaten erzeugen und speichern
  python main.py validate                         Sitzungsbestand prüfen
  python main.py progress <klasse>                Lernfortschritt je Fach
  python main.py subjects <klasse> --kind exam     Wählbare Fächer
  python main.py status <klasse> <datum>          Angezeigter Status der Sitzungen
  python main.py week <klasse> <datum>            In der Woche neu begonnene Fächer
  python main.py teachers <fach>                  Lehrkraft-Vorschläge für ein Fach
  python main.py propagate <klasse> <datum>       Woche in die Folgewoche übertragen
"""

import logging
import sys
from datetime import date, datetime
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()

# Standard-Pfad für gespeicherte ScheduleData
DEFAULT_DATA_JSON = Path("output/schedule_data.json")

_STATUS_LABELS = {
    "pending": "[dim]geplant[/dim]",
    "ongoing": "[bold yellow]läuft[/bold yellow]",
    "completed": "[green]beendet[/green]",
    "off": "[red]fällt aus[/red]",
    "makeup": "[cyan]Nachholtermin[/cyan]",
}


def _load_data_or_abort(json_path: str):
    """Lädt den Datensatz samt Repository oder bricht mit Fehlermeldung ab."""
    from data.repository import JsonScheduleStore

    p = Path(json_path)
    if not p.exists():
        console.print(
            f"[red]Keine Datendatei gefunden: {p}[/red]\n"
            "Verwenden Sie zunächst [bold]python main.py generate[/bold]."
        )
        sys.exit(1)
    return JsonScheduleStore(p)


def _build_service(store):
    from engine.service import ScheduleService

    data = store.data
    return ScheduleService(
        store.repository, data.subjects, data.classes, data.config,
        holidays=data.holiday_calendar(),
        overrides=data.override_table(),
    )


def _require_class(data, class_id: str):
    school_class = data.class_map.get(class_id)
    if school_class is None:
        console.print(f"[red]Klasse {class_id} nicht gefunden.[/red]")
        sys.exit(1)
    return school_class


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Datum im Format JJJJ-MM-TT erwartet: {value}")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anlegen oder anzeigen."""


@cmd_config.command("init")
@click.option("--force", is_flag=True, default=False,
              help="Bestehende Konfiguration überschreiben.")
def config_init(force: bool):
    """Legt die Standard-Konfiguration als YAML an."""
    from config.defaults import default_engine_config
    from config.manager import ConfigManager

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Mit [bold]--force[/bold] wird sie überschrieben."
        )
        return
    mgr.save(default_engine_config())


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    from config.manager import ConfigManager

    config = ConfigManager().load_or_default()

    console.print(Panel(
        f"[bold]{config.school_name}[/bold]",
        title="Engine-Konfiguration",
        border_style="cyan",
    ))

    tg = config.time_grid
    table = Table(title="Tagesraster", box=box.ROUNDED)
    table.add_column("Std.")
    table.add_column("Beginn")
    table.add_column("Ende")
    table.add_column("Halbtag")
    for slot in tg.lesson_slots:
        half = "Vormittag" if slot.slot_number <= tg.morning_last_period else "Nachmittag"
        table.add_row(str(slot.slot_number), slot.start_time, slot.end_time, half)
    console.print(table)

    sc = config.sharing
    console.print(
        f"\n[bold]Neutrale Fachbereiche:[/bold] {', '.join(sc.all_neutral_major_ids)} | "
        f"ohne allgemeinbildende Fächer: {', '.join(sc.culture_excluded_class_markers)}"
    )
    pc = config.propagation
    console.print(
        f"[bold]Woche fortsetzen:[/bold] +{pc.offset_days} Tage | "
        f"Warnung ab ≤ {pc.near_completion_threshold} Reststunden"
    )


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--week", "week_of", default=None,
              help="Datum in der ersten Planungswoche (JJJJ-MM-TT), Standard: heute.")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad für JSON-Export.")
def cmd_generate(seed: int, week_of, json_path: str):
    """Erzeugt Testdaten (Klassen, Fächer, Lehrkräfte, eine geplante Woche)."""
    from config.manager import ConfigManager
    from data.fake_data import FakeDataGenerator

    config = ConfigManager().load_or_default()
    start = _parse_date(week_of) if week_of else None

    console.print("[bold]Testdaten werden generiert...[/bold]")
    gen = FakeDataGenerator(config, seed=seed, week_start=start)
    data = gen.generate()
    gen.print_summary(data)
    console.print(f"\n[dim]{data.summary()}[/dim]")

    out_path = Path(json_path)
    data.save_json(out_path)
    console.print(f"[green]✓[/green] JSON gespeichert: {out_path}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
def cmd_validate(json_path: str):
    """Prüft den Sitzungsbestand auf Überschneidungen und Umfangsüberschreitungen."""
    from analysis.schedule_validator import ScheduleValidator

    store = _load_data_or_abort(json_path)
    console.print(f"\n{store.data.summary()}\n")
    report = ScheduleValidator().validate(store.data)
    report.print_rich()

    sys.exit(0 if report.is_valid else 1)


# ─── PROGRESS ─────────────────────────────────────────────────────────────────

@click.command("progress")
@click.argument("class_id")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
def cmd_progress(class_id: str, json_path: str):
    """Zeigt unterrichtete und verbleibende Stunden je Fach einer Klasse."""
    store = _load_data_or_abort(json_path)
    data = store.data
    school_class = _require_class(data, class_id)
    service = _build_service(store)
    sessions = store.repository.list_sessions()

    table = Table(title=f"Lernfortschritt {school_class.name}", box=box.ROUNDED)
    table.add_column("Fach")
    table.add_column("Gruppe")
    table.add_column("Unterrichtet", justify="right")
    table.add_column("Offen", justify="right")
    table.add_column("Umfang", justify="right")
    table.add_column("Status")

    for subject in data.subjects:
        if not service.sharing.is_class_eligible(subject, school_class):
            continue
        groups = sorted(
            {s.group for s in sessions if s.subject_id == subject.id and s.class_id == class_id},
            key=lambda g: g or "",
        ) or [None]
        for group in groups:
            p = service.progress_for(subject.id, class_id, group)
            done = service.eligibility.is_finished(
                subject, class_id, sessions, service.overrides, group
            )
            table.add_row(
                subject.name,
                group or "–",
                str(p.learned),
                str(p.remaining),
                str(p.total),
                "[green]abgeschlossen[/green]" if done else "",
            )
    console.print(table)


# ─── SUBJECTS ─────────────────────────────────────────────────────────────────

@click.command("subjects")
@click.argument("class_id")
@click.option("--kind", type=click.Choice(["class", "exam"]), default="class",
              help="Art der neuen Sitzung.")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
def cmd_subjects(class_id: str, kind: str, json_path: str):
    """Listet die Fächer, die für die Klasse gerade wählbar sind."""
    from models.session import SessionKind

    store = _load_data_or_abort(json_path)
    _require_class(store.data, class_id)
    service = _build_service(store)

    subjects = service.available_subjects(SessionKind(kind), class_id)
    table = Table(title=f"Wählbare Fächer ({kind})", box=box.ROUNDED)
    table.add_column("ID")
    table.add_column("Fach")
    table.add_column("Umfang", justify="right")
    table.add_column("Gemeinsam")
    for s in subjects:
        table.add_row(s.id, s.name, str(s.total_periods),
                      "ja" if service.is_shared(s.id, class_id) else "")
    console.print(table)
    if not subjects:
        console.print("[dim]Keine Fächer wählbar.[/dim]")


# ─── STATUS ───────────────────────────────────────────────────────────────────

@click.command("status")
@click.argument("class_id")
@click.argument("day")
@click.option("--at", "at_time", default=None,
              help="Zeitpunkt (JJJJ-MM-TTTHH:MM), Standard: jetzt.")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
def cmd_status(class_id: str, day: str, at_time, json_path: str):
    """Zeigt die Sitzungen eines Tages mit ihrem aktuellen Status."""
    from engine.status import StatusDeterminer

    store = _load_data_or_abort(json_path)
    data = store.data
    school_class = _require_class(data, class_id)
    target = _parse_date(day)
    now = datetime.fromisoformat(at_time) if at_time else datetime.now()

    determiner = StatusDeterminer(data.config.time_grid)
    tracker = _build_service(store).tracker
    subjects = data.subject_map
    sessions = store.repository.list_sessions()
    todays = sorted(
        (s for s in sessions if s.class_id == class_id and s.date == target),
        key=lambda s: s.start_period,
    )

    table = Table(title=f"{school_class.name} am {target.strftime('%d.%m.%Y')}",
                  box=box.ROUNDED)
    table.add_column("Std.")
    table.add_column("Fach")
    table.add_column("Lehrkraft")
    table.add_column("Raum")
    table.add_column("Fortschritt")
    table.add_column("Status")
    for s in todays:
        subject = subjects.get(s.subject_id)
        total = subject.total_periods if subject else 0
        info = tracker.sequence_info(s, sessions, total)
        status = determiner.effective_status(
            s.date, s.start_period, s.status, now, s.period_count
        )
        table.add_row(
            f"{s.start_period}–{s.end_period - 1}",
            subject.name if subject else s.subject_id,
            s.teacher_id,
            s.room_id,
            f"{info.cumulative}/{total}" + (" (Beginn)" if info.is_first else "")
            + (" (Ende)" if info.is_last else ""),
            _STATUS_LABELS[status.value],
        )
    console.print(table)


# ─── WEEK ─────────────────────────────────────────────────────────────────────

@click.command("week")
@click.argument("class_id")
@click.argument("day")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
def cmd_week(class_id: str, day: str, json_path: str):
    """Zeigt die Fächer, die in der Woche des Datums neu beginnen."""
    from analysis.week_summary import subjects_started_in_week

    store = _load_data_or_abort(json_path)
    _require_class(store.data, class_id)
    started = subjects_started_in_week(store.data, class_id, _parse_date(day))

    if not started:
        console.print("[dim]In dieser Woche beginnt kein neues Fach.[/dim]")
        return
    table = Table(title="Neu begonnene Fächer", box=box.ROUNDED)
    table.add_column("Fach")
    table.add_column("Lehrkraft")
    table.add_column("Umfang", justify="right")
    for s in started:
        table.add_row(s.subject_name, s.teacher_name, str(s.total_periods))
    console.print(table)


# ─── TEACHERS ─────────────────────────────────────────────────────────────────

@click.command("teachers")
@click.argument("subject_id")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
def cmd_teachers(subject_id: str, json_path: str):
    """Schlägt Lehrkräfte für ein Fach vor (verantwortliche zuerst)."""
    from analysis.teacher_suggestion import TeacherSuggester

    store = _load_data_or_abort(json_path)
    subject = store.data.subject_map.get(subject_id)
    if subject is None:
        console.print(f"[red]Fach {subject_id} nicht gefunden.[/red]")
        sys.exit(1)

    result = TeacherSuggester().suggest(subject, store.data.teachers)
    for t in result.suggested:
        console.print(f"[green]★[/green] {t.name} ({t.id})")
    for t in result.others:
        console.print(f"  {t.name} ({t.id})")


# ─── PROPAGATE ────────────────────────────────────────────────────────────────

@click.command("propagate")
@click.argument("class_id")
@click.argument("day")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--dry-run", is_flag=True, default=False,
              help="Ergebnis anzeigen, aber nicht speichern.")
def cmd_propagate(class_id: str, day: str, json_path: str, dry_run: bool):
    """Überträgt die Woche des Datums in die Folgewoche."""
    store = _load_data_or_abort(json_path)
    _require_class(store.data, class_id)
    service = _build_service(store)

    result = service.continue_next_week(class_id, _parse_date(day))
    for line in result.report_lines():
        style = "yellow" if result.warnings else "green"
        console.print(f"[{style}]{line}[/{style}]")

    if result.warnings:
        console.print(f"[dim]{result.created_count} Sitzungen übernommen.[/dim]")
    if dry_run:
        console.print("[dim]Testlauf – nichts gespeichert.[/dim]")
        return
    store.save()
    console.print(f"[green]✓[/green] Gespeichert: {store.path}")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Ausführliche Log-Ausgabe.")
def cli(verbose: bool):
    """Wochenplan: Sitzungsplanung für Berufsschulklassen."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main():
    """Einstiegspunkt. Fachliche Fehler werden als Meldung ausgegeben."""
    from engine.errors import ScheduleError

    try:
        cli(standalone_mode=False)
    except ScheduleError as e:
        console.print(f"[red bold]Fehler:[/red bold] {e}")
        sys.exit(1)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.exceptions.Abort:
        console.print("[yellow]Abgebrochen.[/yellow]")
        sys.exit(1)


# Befehle registrieren
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_validate)
cli.add_command(cmd_progress)
cli.add_command(cmd_subjects)
cli.add_command(cmd_status)
cli.add_command(cmd_week)
cli.add_command(cmd_teachers)
cli.add_command(cmd_propagate)


if __name__ == "__main__":
    main()
