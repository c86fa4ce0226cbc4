from enum import Enum


class LabeledEnum(str, Enum):
    """str Enum with a Spanish display label and legacy value migration."""

    @property
    def label(self) -> str:
        return _LABELS[type(self)][self]

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            legacy = _LEGACY_VALUES.get(cls, {}).get(value.strip().lower())
            if legacy is not None:
                return cls(legacy)
        return None


class ProjectStatus(LabeledEnum):
    UNSTARTED = "unstarted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    INVOICED = "invoiced"


class ResourceKind(LabeledEnum):
    PHOTO = "photo"
    AUDIO = "audio"
    TEXT_NOTE = "text_note"


class Priority(LabeledEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ReminderType(LabeledEnum):
    DEADLINE = "deadline"
    FOLLOWUP = "followup"
    MEETING = "meeting"
    GENERAL = "general"


class ReminderStatus(LabeledEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    DISMISSED = "dismissed"


class ExportStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_LABELS = {
    ProjectStatus: {
        ProjectStatus.UNSTARTED: "Sin iniciar",
        ProjectStatus.IN_PROGRESS: "En progreso",
        ProjectStatus.COMPLETED: "Completado",
        ProjectStatus.DELIVERED: "Entregado",
        ProjectStatus.INVOICED: "Facturado",
    },
    ResourceKind: {
        ResourceKind.PHOTO: "Fotografía",
        ResourceKind.AUDIO: "Grabación de audio",
        ResourceKind.TEXT_NOTE: "Nota de texto",
    },
    Priority: {
        Priority.LOW: "Baja",
        Priority.MEDIUM: "Media",
        Priority.HIGH: "Alta",
        Priority.URGENT: "Urgente",
    },
    ReminderType: {
        ReminderType.DEADLINE: "Fecha límite",
        ReminderType.FOLLOWUP: "Seguimiento",
        ReminderType.MEETING: "Reunión",
        ReminderType.GENERAL: "General",
    },
    ReminderStatus: {
        ReminderStatus.PENDING: "Pendiente",
        ReminderStatus.COMPLETED: "Completado",
        ReminderStatus.DISMISSED: "Descartado",
    },
}

# Values written by the first schema generation (Spanish enum values).
_LEGACY_VALUES = {
    ProjectStatus: {
        "en_progreso": "in_progress",
        "completado": "completed",
        "facturado": "invoiced",
    },
    ResourceKind: {
        "foto": "photo",
        "nota_texto": "text_note",
    },
}


def _check_labels():
    for enum_cls, labels in _LABELS.items():
        missing = [member.value for member in enum_cls if member not in labels]
        if missing:
            raise RuntimeError(f"{enum_cls.__name__} has no label for {missing}")


_check_labels()
