from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from app.schemas.enum import ExportStatus, Priority, ProjectStatus, ResourceKind


def _alias(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class Project(BaseModel):
    """Project snapshot. Accepts both the current and the legacy (Spanish) field names."""

    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    name: str = Field(validation_alias=_alias("name", "nombre"))
    client_name: str = Field(validation_alias=_alias("client_name", "cliente_nombre"))
    contact: Optional[str] = Field(default=None, validation_alias=_alias("contact", "contacto"))
    phone: Optional[str] = Field(default=None, validation_alias=_alias("phone", "telefono"))
    location: Optional[str] = Field(default=None, validation_alias=_alias("location", "ubicacion"))
    installation_type: Optional[str] = Field(
        default=None, validation_alias=_alias("installation_type", "tipo_instalacion")
    )
    start_date: Optional[date] = Field(default=None, validation_alias=_alias("start_date", "fecha_inicio"))
    end_date: Optional[date] = Field(default=None, validation_alias=_alias("end_date", "fecha_fin"))
    due_date: Optional[date] = Field(default=None, validation_alias=_alias("due_date", "fecha_entrega"))
    status: ProjectStatus = Field(
        default=ProjectStatus.IN_PROGRESS, validation_alias=_alias("status", "estado")
    )
    priority: Optional[Priority] = Field(default=None, validation_alias=_alias("priority", "prioridad"))
    budget: Optional[Decimal] = Field(default=None, validation_alias=_alias("budget", "presupuesto"))
    description: Optional[str] = Field(default=None, validation_alias=_alias("description", "descripcion"))


class Resource(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    project_id: Optional[int] = Field(default=None, validation_alias=_alias("project_id", "proyecto_id"))
    kind: ResourceKind = Field(validation_alias=_alias("kind", "tipo"))
    file_path: Optional[str] = Field(default=None, validation_alias=_alias("file_path", "archivo_path"))
    description: Optional[str] = Field(default=None, validation_alias=_alias("description", "descripcion"))
    transcript: Optional[str] = Field(default=None, validation_alias=_alias("transcript", "transcripcion"))
    created_at: Optional[datetime] = Field(
        default=None, validation_alias=_alias("created_at", "fecha_creacion")
    )

    @model_validator(mode="after")
    def _file_required_for_media(self):
        if self.kind in (ResourceKind.PHOTO, ResourceKind.AUDIO) and not self.file_path:
            raise ValueError(f"{self.kind.value} resources require file_path")
        return self


class ReportRequest(BaseModel):
    project: Project
    resources: List[Resource] = []


class ReportExportRequest(ReportRequest):
    request_id: str
    webhook_url: Optional[str] = None


class ReportTaskResponse(BaseModel):
    task_id: str
    request_id: str
    status: ExportStatus
    message: str
