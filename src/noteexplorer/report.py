"""Console reports for note collection queries."""

from typing import Any

from .core.collection import NoteCollection
from .core.model import NoteMeta, WikiLink


def note_list(notes: list[NoteMeta]) -> str:
    return "\n".join(f"- {note.wikilink_to()}" for note in notes)


def stats_report(collection: NoteCollection) -> str:
    return "\n".join(
        [
            "# Statistics",
            "",
            f"- Notes in collection: {collection.count()}",
            f"- Notes with ID: {collection.count_with_id()}",
            f"- Wikilinks: {collection.count_links()}",
        ]
    )


def tasks_report(tasks: list[tuple[NoteMeta, list[str]]]) -> str:
    num_tasks = sum(len(note_tasks) for _, note_tasks in tasks)
    lines = ["# Tasks", "", f"There are {num_tasks} tasks in your notes"]
    for note, note_tasks in tasks:
        lines += ["", f"## {note.wikilink_to()}", ""]
        lines += [f"- [ ] {task}" for task in note_tasks]
    return "\n".join(lines)


def _classification_report(heading: str, description: str, notes: list[NoteMeta]) -> str:
    report = f"# {heading}\n\n{len(notes)} notes {description}\n"
    if notes:
        report += "\n" + note_list(notes)
    return report


def sources_report(notes: list[NoteMeta]) -> str:
    return _classification_report(
        "Source notes", "have no incoming links, but at least one outgoing link", notes
    )


def sinks_report(notes: list[NoteMeta]) -> str:
    return _classification_report(
        "Sink notes", "have no outgoing links, but at least one incoming link", notes
    )


def isolated_report(notes: list[NoteMeta]) -> str:
    return _classification_report("Isolated notes", "have no incoming or outgoing links", notes)


def broken_links_report(broken: list[tuple[WikiLink, list[NoteMeta]]]) -> str:
    lines = ["# Broken links", ""]
    for link, notes in broken:
        linkers = " and ".join(note.wikilink_to() for note in notes)
        lines.append(f'- "{linkers}" links to unknown {link}')
    return "\n".join(lines).rstrip()


def changed_report(verb: str, notes: list[NoteMeta], list_notes: bool = True) -> str:
    report = f"{verb} {len(notes)} notes"
    if list_notes and notes:
        report += "\n\n" + note_list(notes)
    return report


# JSON shapes


def link_to_dict(link: WikiLink) -> dict[str, str]:
    return {"kind": link.kind.value, "target": link.text}


def broken_links_json(broken: list[tuple[WikiLink, list[NoteMeta]]]) -> list[dict[str, Any]]:
    return [
        {"link": link_to_dict(link), "notes": [note.to_dict() for note in notes]}
        for link, notes in broken
    ]


def tasks_json(tasks: list[tuple[NoteMeta, list[str]]]) -> list[dict[str, Any]]:
    return [{"note": note.to_dict(), "tasks": note_tasks} for note, note_tasks in tasks]


def stats_json(collection: NoteCollection) -> dict[str, int]:
    return {
        "notes": collection.count(),
        "notes_with_id": collection.count_with_id(),
        "wikilinks": collection.count_links(),
    }
