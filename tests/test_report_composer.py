import os
import sys
from datetime import date, datetime
from decimal import Decimal

import pytest

# Add src to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from app.report.composer import (
    AUDIO_SECTION,
    AUDIO_WITHOUT_TRANSCRIPT,
    NOTES_SECTION,
    PHOTOS_SECTION,
    RESOURCES_SECTION,
    compose_sections,
    group_resources,
)
from app.report.formatting import format_currency, format_date
from app.report.layout import ImageItem, TextItem
from app.report.schema import Project, Resource
from app.schemas.enum import ResourceKind


@pytest.fixture
def project():
    return Project(
        name="Camera Install",
        client_name="Acme",
        status="invoiced",
        budget=500000,
        location="Santiago",
        start_date=date(2024, 3, 1),
    )


def texts(items):
    return [item.text for item in items if isinstance(item, TextItem)]


def note(id, text):
    return Resource(id=id, kind="text_note", description=text, created_at=datetime(2024, 3, id, 10, 0))


def photo(id, description=None):
    return Resource(id=id, kind="photo", file_path=f"1/foto_{id}.jpg", description=description)


def audio(id, transcript=None):
    return Resource(id=id, kind="audio", file_path=f"1/audio_{id}.webm", transcript=transcript)


def test_project_block(project):
    lines = texts(compose_sections(project, []))
    assert "Proyecto: Camera Install" in lines
    assert "Cliente: Acme" in lines
    assert "Ubicación: Santiago" in lines
    assert "Fecha de Inicio: 1/3/2024" in lines
    assert "Estado: Facturado" in lines
    assert "Presupuesto: $500.000" in lines
    # absent optional fields are skipped
    assert not any(line.startswith("Contacto:") for line in lines)


def test_empty_resources_emit_only_project_block(project):
    lines = texts(compose_sections(project, []))
    assert RESOURCES_SECTION not in lines
    assert NOTES_SECTION not in lines
    assert PHOTOS_SECTION not in lines
    assert AUDIO_SECTION not in lines


def test_sections_follow_fixed_order(project):
    resources = [audio(1, "hola"), photo(2, "fachada"), note(3, "cableado listo")]
    items = compose_sections(project, resources)
    lines = texts(items)

    assert lines.index(RESOURCES_SECTION) < lines.index(NOTES_SECTION)
    assert lines.index(NOTES_SECTION) < lines.index("cableado listo")
    assert lines.index("cableado listo") < lines.index(PHOTOS_SECTION)
    assert lines.index(PHOTOS_SECTION) < lines.index("fachada")
    assert lines.index("fachada") < lines.index(AUDIO_SECTION)
    assert lines.index(AUDIO_SECTION) < lines.index("hola")

    images = [item for item in items if isinstance(item, ImageItem)]
    assert [(i.resource_id, i.file_path) for i in images] == [(2, "1/foto_2.jpg")]


def test_input_order_kept_within_group(project):
    lines = texts(compose_sections(project, [note(2, "segunda"), note(1, "primera")]))
    assert lines.index("segunda") < lines.index("primera")
    assert "1. 2/3/2024" in lines
    assert "2. 1/3/2024" in lines


def test_empty_sections_are_omitted(project):
    lines = texts(compose_sections(project, [photo(1)]))
    assert PHOTOS_SECTION in lines
    assert NOTES_SECTION not in lines
    assert AUDIO_SECTION not in lines
    assert "Fotografía 1 - Sin fecha" in lines


def test_audio_transcript_or_notice(project):
    lines = texts(compose_sections(project, [audio(1, "se revisó el rack"), audio(2)]))
    assert "Transcripción:" in lines
    assert "se revisó el rack" in lines
    assert lines.count(AUDIO_WITHOUT_TRANSCRIPT) == 1


def test_group_resources_buckets_by_kind():
    groups = group_resources([audio(1), note(2, "a"), audio(3)])
    assert [r.id for r in groups[ResourceKind.AUDIO]] == [1, 3]
    assert [r.id for r in groups[ResourceKind.TEXT_NOTE]] == [2]
    assert groups[ResourceKind.PHOTO] == []


def test_compose_does_not_mutate_input(project):
    resources = [audio(1), photo(2), note(3, "x")]
    snapshot = list(resources)
    compose_sections(project, resources)
    assert resources == snapshot


@pytest.mark.parametrize(
    "amount,expected",
    [
        (500000, "$500.000"),
        (Decimal("1234567"), "$1.234.567"),
        (Decimal("1500.5"), "$1.500,50"),
        (0, "$0"),
    ],
)
def test_format_currency(amount, expected):
    assert format_currency(amount) == expected


def test_format_date():
    assert format_date(date(2024, 12, 25)) == "25/12/2024"
    assert format_date(datetime(2024, 1, 5, 23, 59)) == "5/1/2024"
    assert format_date(None) == "Sin fecha"
