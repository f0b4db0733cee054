# Importe tous les modèles pour enregistrer leurs tables dans Base.metadata
# avant que SQLAlchemy tente de résoudre les clés étrangères inter-modèles.

from app.models.user import Role, User  # noqa: F401
from app.models.device import Device  # noqa: F401
from app.models.visitor import Visitor  # noqa: F401
from app.models.attendance import Attendance  # noqa: F401
