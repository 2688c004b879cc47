"""English strings."""

EN_STRINGS = {
    # === COMMON ===
    "app_name": "Power Play",
    "default_user_name": "PowerPlay user",

    # === POINT TRANSACTIONS ===
    "tx_charge": "Point charge",
    "tx_match_join": "Match entry",
    "tx_waitlist_promotion": "Match entry (promoted from waitlist)",
    "tx_auto_settlement": "Match entry (auto payment)",
    "tx_refund": "Match cancellation refund ({percent}%)",
    "tx_admin_cancel_refund": "Match cancellation refund (canceled by organizer)",
    "tx_admin_adjustment": "Admin point adjustment",

    # === MATCH NOTIFICATIONS ===
    "push_match_join_title": "New registration",
    "push_match_join_body": "{name} registered as {position} for {rink} on {date}. ({status})",
    "push_waitlist_promoted_title": "You're in!",
    "push_waitlist_promoted_body": "Your spot for {rink} on {date} is confirmed.",
    "push_waitlist_pending_body": "A spot opened for {rink} on {date}. Charge points to confirm it.",
    "push_match_canceled_title": "Match canceled",
    "push_match_canceled_body": "The match at {rink} on {date} was canceled. Refund: {refund}P",
    "push_regular_match_title": "Will you attend the regular match?",
    "push_regular_match_body": "{club} · {rink} on {date}",

    # === POINT NOTIFICATIONS ===
    "push_charge_confirmed_title": "Points charged",
    "push_charge_confirmed_body": "{amount}P was added. Balance: {balance}P",
    "push_charge_settled_body": "{amount}P was added. {count} pending match(es) are now confirmed.",
    "push_charge_rejected_title": "Charge rejected",
    "push_charge_rejected_body": "Your charge request ({amount}P) was rejected. {reason}",

    # === CLUB NOTIFICATIONS ===
    "push_club_join_request_title": "Club join request",
    "push_club_join_request_body": "{name} asked to join {club}.",
    "push_club_approved_title": "Club membership approved",
    "push_club_approved_body": "You are now a member of {club}.",
    "push_club_rejected_title": "Club membership rejected",
    "push_club_rejected_body": "Your request to join {club} was rejected.",
    "push_club_notice_title": "[{club}] New notice",
    "push_club_notice_body": "{title}",

    # === PUSH TEST ===
    "push_test_title": "Test notification 🧪",
    "push_test_body": "This is a test notification.",

    # === AUDIT ===
    "audit_title": "🔔 Alert: {action}",
    "audit_user_signup": "A new user signed up. ({email})",
    "audit_club_create": "A new club was created. ({club})",
    "audit_match_create": "A new match was created. ({date} {rink})",
    "audit_match_join": "{name} registered for {rink} on {date}. ({status})",
    "audit_match_cancel": "{name} canceled {rink} on {date}. (refund {refund}P)",
    "audit_point_charge_request": "{name} requested a {amount}P charge. (depositor: {depositor})",
    "audit_push_subscribe": "{name} subscribed to notifications.",
    "audit_chat_create": "A new chat room was opened. ({p1} and {p2})",
    "audit_admin_apply": "{name} applied for admin access.",
}
