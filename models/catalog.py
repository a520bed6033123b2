"""Übernahme des Session Catalog + Requirement Directory.

Der Katalog liefert Termine verschachtelt:

    Fachbereich → Schulungsort → Raum/Gruppierung → [Termine]

normalize_catalog() flacht diese Struktur EINMALIG ab und setzt jedes Feld
explizit (Ort, Fachbereich, Gruppe, Teil). Alte Datensätze mit
zusammengesetztem group_name ("Berlin Training Centre | Finance") werden nur
hier aufgelöst; alle nachgelagerten Komponenten sehen ausschließlich
typisierte Felder.
"""

from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel, ValidationError

from models.session import Session, parse_group_number, parse_part_number


class CatalogImportError(Exception):
    """Fehler bei der Übernahme des Session Catalog."""


# Begriffe, an denen ein Schulungsort im Legacy-group_name erkannt wird
_LOCATION_MARKERS = ("Training", "Centre", "Center")


class RequirementDirectory(BaseModel):
    """Rolle → Pflichtkurse (course_ids)."""

    mappings: dict[str, list[str]] = {}

    def required_for(self, role: str) -> list[str]:
        """Pflichtkurse einer Rolle; leere Liste bei unbekannter Rolle."""
        return list(self.mappings.get(role, []))

    def has_role(self, role: str) -> bool:
        return role in self.mappings


def _split_legacy_group_name(group_name: str) -> tuple[Optional[str], Optional[str]]:
    """Zerlegt "Ort | Fachbereich" (in beliebiger Reihenfolge) in (Ort, Fachbereich)."""
    if "|" not in group_name:
        return None, None
    location, area = None, None
    for part in (p.strip() for p in group_name.split("|")):
        if not part:
            continue
        if any(marker in part for marker in _LOCATION_MARKERS):
            location = location or part
        else:
            area = area or part
    return location, area


def _normalize_session(
    raw: dict[str, Any],
    functional_area: Optional[str] = None,
    training_location: Optional[str] = None,
    classroom: Optional[str] = None,
) -> Session:
    """Baut aus einem Rohtermin ein vollständig typisiertes Session-Objekt."""
    title = raw.get("title")
    course_id = raw.get("course_id") or raw.get("courseId")
    if not title or not course_id:
        raise CatalogImportError(
            f"Termin ohne Titel oder course_id: {raw!r}"
        )

    location = raw.get("training_location") or training_location
    area = raw.get("functional_area") or functional_area
    if (not location or not area) and raw.get("group_name"):
        legacy_location, legacy_area = _split_legacy_group_name(raw["group_name"])
        location = location or legacy_location
        area = area or legacy_area
    if not location:
        raise CatalogImportError(f"Termin '{title}': Schulungsort fehlt.")

    group_number = raw.get("group_number") or parse_group_number(title) or 1
    part_number = raw.get("part_number") or parse_part_number(title)
    session_id = raw.get("session_id") or raw.get("id") or raw.get("eventId")

    try:
        return Session(
            session_id=str(session_id) if session_id is not None else None,
            course_id=str(course_id),
            course_name=raw.get("course_name") or raw.get("courseName") or str(course_id),
            title=title,
            training_location=location,
            functional_area=area or "General",
            classroom=raw.get("classroom") or classroom,
            session_number=raw.get("session_number") or 1,
            group_number=int(group_number),
            part_number=int(part_number) if part_number else None,
            start=raw["start"],
            end=raw["end"],
            max_participants=raw.get("max_participants"),
            trainer_id=raw.get("trainer_id"),
            trainer_name=raw.get("trainer_name"),
        )
    except KeyError as e:
        raise CatalogImportError(f"Termin '{title}': Feld {e} fehlt.") from e
    except ValidationError as e:
        raise CatalogImportError(f"Termin '{title}' ungültig: {e}") from e


def normalize_catalog(raw: Union[dict, list]) -> list[Session]:
    """Flacht den Session Catalog ab und normalisiert alle Termine.

    Akzeptiert die verschachtelte Struktur (dict) oder eine bereits flache
    Liste von Rohterminen. Die Reihenfolge der Eingabe bleibt erhalten.
    """
    sessions: list[Session] = []

    if isinstance(raw, list):
        for item in raw:
            sessions.append(_normalize_session(item))
        return sessions

    if not isinstance(raw, dict):
        raise CatalogImportError(
            f"Katalog muss dict oder list sein, nicht {type(raw).__name__}."
        )

    for functional_area, locations in raw.items():
        if not isinstance(locations, dict):
            raise CatalogImportError(
                f"Fachbereich '{functional_area}': Schulungsorte erwartet."
            )
        for training_location, rooms in locations.items():
            if not isinstance(rooms, dict):
                raise CatalogImportError(
                    f"{functional_area}/{training_location}: Räume erwartet."
                )
            for classroom, session_list in rooms.items():
                if not isinstance(session_list, list):
                    raise CatalogImportError(
                        f"{functional_area}/{training_location}/{classroom}: "
                        f"Terminliste erwartet."
                    )
                for item in session_list:
                    sessions.append(_normalize_session(
                        item,
                        functional_area=functional_area,
                        training_location=training_location,
                        classroom=classroom,
                    ))

    return sessions


def nest_catalog(sessions: Iterable[Session]) -> dict[str, dict[str, dict[str, list[dict]]]]:
    """Gegenstück zu normalize_catalog: erzeugt die verschachtelte Katalogform."""
    nested: dict[str, dict[str, dict[str, list[dict]]]] = {}
    for s in sessions:
        room = s.classroom or "Default"
        raw = s.model_dump(mode="json", exclude_none=True)
        nested.setdefault(s.functional_area, {}).setdefault(
            s.training_location, {}).setdefault(room, []).append(raw)
    return nested

