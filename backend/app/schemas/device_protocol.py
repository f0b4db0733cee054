"""
Schémas Pydantic du protocole terminal.
Endpoints : POST /api/visitors/getPersonList, /api/visitors/getPersonInfo, /api/attendances/dataUpload

Enveloppe fixe lue par le firmware : {result, success, msg, data?, total?}
- result = 1 / success = true en cas de succès
- result = 0 / success = false sinon
Elle ne doit jamais être confondue avec l'enveloppe {success, data, error} de l'administration.

Les champs des requêtes sont tous optionnels : la présence est contrôlée par le service
pour pouvoir répondre dans l'enveloppe terminal plutôt qu'en 422.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DeviceRequest(BaseModel):
    """Base des requêtes terminal : camelCase, nombres acceptés pour les champs texte."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    group_id: Optional[str] = None
    device_key: Optional[str] = None


class RosterPageRequest(DeviceRequest):
    page: Optional[int] = None
    page_size: Optional[int] = None


class PersonInfoRequest(DeviceRequest):
    idcard_num: Optional[str] = None


class DataUploadRequest(DeviceRequest):
    idcard_number: Optional[str] = None
    record_id: Optional[str] = None
    img_base64: Optional[str] = None
    time: Optional[str] = None          # epoch en millisecondes
    type: Optional[str] = None          # face_0, card_0, face_and_card...
    extra: Optional[Any] = None         # charge opaque, stockée sans interprétation


class RosterRecord(BaseModel):
    """Visiteur tel que transmis au terminal, avec son empreinte composite."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    idcard_num: str
    name: str
    img_base64: Optional[str] = None
    type: Optional[int] = None
    passtime: Optional[str] = None
    md5: str


class DeviceAck(BaseModel):
    result: int
    success: bool
    msg: str


class RosterPageResponse(DeviceAck):
    total: int
    data: List[RosterRecord]


class PersonInfoResponse(DeviceAck):
    data: RosterRecord
