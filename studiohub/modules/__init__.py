"""Domain modules package."""

from studiohub.modules.booking import models as booking_models  # noqa: F401
from studiohub.modules.catalog import models as catalog_models  # noqa: F401
from studiohub.modules.equipment import models as equipment_models  # noqa: F401
from studiohub.modules.notifications import models as notifications_models  # noqa: F401
from studiohub.modules.policies import models as policies_models  # noqa: F401
from studiohub.modules.promotions import models as promotions_models  # noqa: F401
from studiohub.modules.scheduling import models as scheduling_models  # noqa: F401
