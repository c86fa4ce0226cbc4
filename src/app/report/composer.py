"""
Turns a project snapshot into the ordered list of content items the layout engine places.

Pure functions only: nothing here fetches, measures or mutates its input.
"""
from typing import Iterable, List, Sequence

from app.report.formatting import format_currency, format_date
from app.report.layout import ContentItem, EnsureSpaceItem, ImageItem, SpaceItem, TextItem
from app.report.schema import Project, Resource
from app.schemas.enum import ResourceKind

REPORT_TITLE = "INFORME TÉCNICO"
REPORT_SUBTITLE = "Sistema de Seguridad y Vigilancia Electrónica"
PROJECT_SECTION = "INFORMACIÓN DEL PROYECTO"
RESOURCES_SECTION = "RECURSOS Y DOCUMENTACIÓN"
NOTES_SECTION = "Notas de Trabajo:"
PHOTOS_SECTION = "Registro Fotográfico:"
AUDIO_SECTION = "Notas de Voz:"
AUDIO_WITHOUT_TRANSCRIPT = "Nota: Grabación de audio disponible en archivos digitales"

# Fixed group order of the resources part of the report.
SECTION_ORDER = (ResourceKind.TEXT_NOTE, ResourceKind.PHOTO, ResourceKind.AUDIO)


def heading(text: str, size: float) -> TextItem:
    return TextItem(text, size=size, style="bold", keep_with_next=True, splittable=False)


def group_resources(resources: Iterable[Resource]) -> dict:
    """Bucket resources by kind, keeping the caller's order inside each bucket."""
    groups = {kind: [] for kind in SECTION_ORDER}
    for resource in resources:
        groups[resource.kind].append(resource)
    return groups


def compose_project_info(project: Project) -> List[ContentItem]:
    items: List[ContentItem] = [
        TextItem(REPORT_TITLE, size=20, style="bold", splittable=False),
        TextItem(REPORT_SUBTITLE, size=14, splittable=False),
        SpaceItem(15),
        heading(PROJECT_SECTION, 16),
        SpaceItem(5),
        TextItem(f"Proyecto: {project.name}", style="bold"),
        TextItem(f"Cliente: {project.client_name}"),
    ]

    optional_fields = (
        ("Contacto", project.contact),
        ("Teléfono", project.phone),
        ("Ubicación", project.location),
        ("Tipo de Instalación", project.installation_type),
    )
    for label, value in optional_fields:
        if value:
            items.append(TextItem(f"{label}: {value}"))

    dates = (
        ("Fecha de Inicio", project.start_date),
        ("Fecha de Finalización", project.end_date),
        ("Fecha de Entrega", project.due_date),
    )
    for label, value in dates:
        if value:
            items.append(TextItem(f"{label}: {format_date(value)}"))

    items.append(TextItem(f"Estado: {project.status.label}"))
    if project.priority:
        items.append(TextItem(f"Prioridad: {project.priority.label}"))
    if project.budget is not None:
        items.append(TextItem(f"Presupuesto: {format_currency(project.budget)}"))

    if project.description:
        items.append(SpaceItem(10))
        items.append(heading("Descripción:", 12))
        items.append(TextItem(project.description, size=11))

    return items


def compose_notes(notes: Sequence[Resource]) -> List[ContentItem]:
    items: List[ContentItem] = [heading(NOTES_SECTION, 14), SpaceItem(5)]
    for index, note in enumerate(notes, start=1):
        items.append(heading(f"{index}. {format_date(note.created_at)}", 11))
        if note.description:
            items.append(TextItem(note.description, size=11))
        items.append(SpaceItem(8))
    items.append(SpaceItem(10))
    return items


def compose_photos(photos: Sequence[Resource]) -> List[ContentItem]:
    items: List[ContentItem] = [EnsureSpaceItem(100), heading(PHOTOS_SECTION, 14), SpaceItem(10)]
    for index, photo in enumerate(photos, start=1):
        items.append(EnsureSpaceItem(80))
        items.append(heading(f"Fotografía {index} - {format_date(photo.created_at)}", 12))
        if photo.description:
            items.append(TextItem(photo.description, size=11, keep_with_next=True, splittable=False))
        items.append(ImageItem(resource_id=photo.id, file_path=photo.file_path))
        items.append(SpaceItem(15))
    return items


def compose_audio(recordings: Sequence[Resource]) -> List[ContentItem]:
    items: List[ContentItem] = [EnsureSpaceItem(60), heading(AUDIO_SECTION, 14), SpaceItem(5)]
    for index, audio in enumerate(recordings, start=1):
        items.append(heading(f"Grabación {index} - {format_date(audio.created_at)}", 12))
        if audio.description:
            items.append(TextItem(audio.description, size=11))
        if audio.transcript:
            items.append(heading("Transcripción:", 11))
            items.append(TextItem(audio.transcript, size=10))
        else:
            items.append(TextItem(AUDIO_WITHOUT_TRANSCRIPT, size=10, style="italic"))
        items.append(SpaceItem(10))
    return items


_SECTION_BUILDERS = {
    ResourceKind.TEXT_NOTE: compose_notes,
    ResourceKind.PHOTO: compose_photos,
    ResourceKind.AUDIO: compose_audio,
}


def compose_sections(project: Project, resources: Sequence[Resource]) -> List[ContentItem]:
    """
    Build the full report content: project block, then notes, photos and audio.

    Sections without resources are left out entirely, and with no resources at
    all the report holds only the project block.
    """
    items = compose_project_info(project)
    items.append(SpaceItem(20))

    if not resources:
        return items

    items.append(heading(RESOURCES_SECTION, 16))
    items.append(SpaceItem(10))

    groups = group_resources(resources)
    for kind in SECTION_ORDER:
        if groups[kind]:
            items.extend(_SECTION_BUILDERS[kind](groups[kind]))
    return items
