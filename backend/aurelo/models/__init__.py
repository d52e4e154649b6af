from .workspaces import Workspace
from .clients import Client
from .invoices import Invoice
