from .workspaces import (
    create_workspace,
    get_workspace_by_id,
    get_workspace_by_stripe_ids,
    load_workspace_plan,
    save_workspace_plan,
)
from .clients import archive_client, count_active_clients, create_client, get_client, list_clients
from .invoices import (
    create_invoice,
    delete_invoice,
    get_invoice,
    list_invoices,
    next_invoice_number,
    update_invoice_status,
)
