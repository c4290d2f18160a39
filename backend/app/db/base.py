from backend.app.db.base_class import Base

# Import models to register metadata for Base.metadata.create_all in tests
from backend.app.models.user import User  # noqa: F401
from backend.app.models.guardian import Guardian  # noqa: F401
from backend.app.models.child import Child  # noqa: F401
from backend.app.models.child_guardian import ChildGuardianLink  # noqa: F401
from backend.app.models.fee_tier import FeeTier  # noqa: F401
from backend.app.models.invoice_sequence import InvoiceSequence  # noqa: F401
from backend.app.models.invoice import Invoice  # noqa: F401
from backend.app.models.invoice_line_item import InvoiceLineItem  # noqa: F401
from backend.app.models.payment import Payment  # noqa: F401
from backend.app.models.payment_method import PaymentMethod  # noqa: F401
