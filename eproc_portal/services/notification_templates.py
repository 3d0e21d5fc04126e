# Notification contents for procurement events
# eproc_portal/services/notification_templates.py

from eproc_portal.models.notification import NotificationContent, NotificationType


def tender_opened(tender_id: str, code: str, title: str) -> NotificationContent:
    return NotificationContent(
        title="New Tender Available",
        message=f"Tender {code} \"{title}\" is open for proposals.",
        type=NotificationType.TENDER,
        entity_type="tender",
        entity_id=tender_id,
        action_url=f"/tenders/{tender_id}",
    )


def proposal_received(proposal_id: str, tender_code: str) -> NotificationContent:
    return NotificationContent(
        title="New Proposal Received",
        message=f"A proposal was submitted for tender {tender_code}.",
        type=NotificationType.PROPOSAL,
        entity_type="proposal",
        entity_id=proposal_id,
        action_url=f"/proposals/{proposal_id}",
    )


def proposal_status_changed(proposal_id: str, status: str) -> NotificationContent:
    return NotificationContent(
        title="Proposal Status Updated",
        message=f"Your proposal is now {status.replace('_', ' ')}.",
        type=NotificationType.SUCCESS if status == "awarded" else NotificationType.INFO,
        entity_type="proposal",
        entity_id=proposal_id,
        action_url=f"/proposals/{proposal_id}",
        metadata={"status": status},
    )


def service_order_issued(order_id: str, po_number: str) -> NotificationContent:
    return NotificationContent(
        title="Service Order Issued",
        message=f"Service order {po_number} was issued for your awarded proposal.",
        type=NotificationType.SUCCESS,
        entity_type="service_order",
        entity_id=order_id,
        action_url=f"/service-orders/{order_id}",
    )


def invoice_received(invoice_id: str, amount_rd: float) -> NotificationContent:
    return NotificationContent(
        title="New Invoice Received",
        message=f"An invoice for RD${amount_rd:,.2f} was submitted.",
        type=NotificationType.INVOICE,
        entity_type="invoice",
        entity_id=invoice_id,
        action_url=f"/invoices/{invoice_id}",
    )


def invoice_settled(invoice_id: str, status: str) -> NotificationContent:
    paid = status == "paid"
    return NotificationContent(
        title="Invoice Paid" if paid else "Invoice Rejected",
        message="Your invoice was paid." if paid else "Your invoice was rejected.",
        type=NotificationType.SUCCESS if paid else NotificationType.ERROR,
        entity_type="invoice",
        entity_id=invoice_id,
        action_url=f"/invoices/{invoice_id}",
    )


def approval_decided(approval_id: str, scope: str, decision: str) -> NotificationContent:
    approved = decision == "approved"
    return NotificationContent(
        title="Approval Granted" if approved else "Approval Rejected",
        message=f"The {scope.replace('_', ' ')} approval was {decision}.",
        type=NotificationType.SUCCESS if approved else NotificationType.ERROR,
        entity_type="approval",
        entity_id=approval_id,
        action_url="/approvals",
        metadata={"scope": scope, "decision": decision},
    )
