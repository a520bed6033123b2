"""User Categorizer: Einordnung aller Teilnehmer gegenüber einem Zeitplan.

Reine Funktion ohne Zustand: gleiche Eingaben liefern immer das gleiche
Ergebnis. Nach jeder Änderung wird komplett neu kategorisiert.
"""

from typing import Iterable

from models.assignment import Assignment
from models.catalog import RequirementDirectory
from models.category import Category, CategoryKind, CategoryResult
from models.trainee import Trainee


def categorize(
    trainees: Iterable[Trainee],
    directory: RequirementDirectory,
    schedule_course_ids: Iterable[str],
    assignments: Iterable[Assignment],
) -> CategoryResult:
    """Ordnet jeden Teilnehmer genau einer Kategorie zu.

    required = Pflichtkurse der Rolle ∩ Kurse des Zeitplans
    missing  = required − bereits zugewiesene Kurse

    - required leer                         → unassigned
    - missing leer                          → fully assigned (in keinem Bucket)
    - nichts zugewiesen, required = alle    → needs_all
    - nichts zugewiesen, required ⊊ alle    → needs_some[kurs] je fehlendem Kurs
    - teilweise zugewiesen                  → partially_assigned UND needs_some[kurs]

    Die Reihenfolge folgt der Eingabe (Teilnehmer) bzw. dem Zeitplan (Kurse).
    """
    course_order = list(dict.fromkeys(schedule_course_ids))
    schedule_courses = set(course_order)

    assigned: dict[str, set[str]] = {}
    for a in assignments:
        assigned.setdefault(a.trainee_id, set()).add(a.course_id)

    result = CategoryResult(needs_some={cid: [] for cid in course_order})

    for trainee in trainees:
        required = frozenset(directory.required_for(trainee.role)) & schedule_courses
        if not required:
            result.unassigned.append(trainee)
            result.by_trainee[trainee.id] = Category(CategoryKind.UNASSIGNED)
            continue

        missing = required - assigned.get(trainee.id, set())
        if not missing:
            result.by_trainee[trainee.id] = Category(CategoryKind.FULLY_ASSIGNED, required)
            continue

        if missing == required:
            if required == schedule_courses:
                result.needs_all.append(trainee)
                result.by_trainee[trainee.id] = Category(
                    CategoryKind.NEEDS_ALL, required, missing)
                continue
            kind = CategoryKind.NEEDS_SOME
        else:
            kind = CategoryKind.PARTIALLY_ASSIGNED
            result.partially_assigned.append(trainee)

        result.by_trainee[trainee.id] = Category(kind, required, frozenset(missing))
        for cid in course_order:
            if cid in missing:
                result.needs_some[cid].append(trainee)

    # Kurse ohne Bedarf nicht als leere Buckets ausgeben
    result.needs_some = {cid: users for cid, users in result.needs_some.items() if users}
    return result
