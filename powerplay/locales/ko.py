"""Korean strings (default locale)."""

KO_STRINGS = {
    # === COMMON ===
    "app_name": "Power Play",
    "default_user_name": "PowerPlay 유저",

    # === POINT TRANSACTIONS ===
    "tx_charge": "포인트 충전",
    "tx_match_join": "경기 참가",
    "tx_waitlist_promotion": "대기 승격 경기 참가",
    "tx_auto_settlement": "경기 참가비 자동 결제",
    "tx_refund": "경기 취소 환불 ({percent}%)",
    "tx_admin_cancel_refund": "경기 취소 환불 (관리자 취소)",
    "tx_admin_adjustment": "관리자 포인트 조정",

    # === MATCH NOTIFICATIONS ===
    "push_match_join_title": "새로운 참가 신청",
    "push_match_join_body": "{name} 님이 {date} {rink} 경기에 {position}(으)로 신청했습니다. ({status})",
    "push_waitlist_promoted_title": "대기 순번이 확정되었습니다",
    "push_waitlist_promoted_body": "{date} {rink} 경기 참가가 확정되었습니다.",
    "push_waitlist_pending_body": "{date} {rink} 경기 자리가 났습니다. 포인트를 충전하면 참가가 확정됩니다.",
    "push_match_canceled_title": "경기가 취소되었습니다",
    "push_match_canceled_body": "{date} {rink} 경기가 취소되었습니다. 환불: {refund}P",
    "push_regular_match_title": "정규 경기 참석 여부를 알려주세요",
    "push_regular_match_body": "{club} · {date} {rink}",

    # === POINT NOTIFICATIONS ===
    "push_charge_confirmed_title": "포인트 충전 완료",
    "push_charge_confirmed_body": "{amount}P가 충전되었습니다. 잔액: {balance}P",
    "push_charge_settled_body": "{amount}P가 충전되었습니다. 대기 중이던 경기 {count}건이 확정되었습니다.",
    "push_charge_rejected_title": "포인트 충전 거절",
    "push_charge_rejected_body": "충전 요청({amount}P)이 거절되었습니다. {reason}",

    # === CLUB NOTIFICATIONS ===
    "push_club_join_request_title": "클럽 가입 신청",
    "push_club_join_request_body": "{name} 님이 {club}에 가입을 신청했습니다.",
    "push_club_approved_title": "클럽 가입 승인",
    "push_club_approved_body": "{club} 가입이 승인되었습니다.",
    "push_club_rejected_title": "클럽 가입 거절",
    "push_club_rejected_body": "{club} 가입 신청이 거절되었습니다.",
    "push_club_notice_title": "[{club}] 새 공지",
    "push_club_notice_body": "{title}",

    # === PUSH TEST ===
    "push_test_title": "테스트 알림 🧪",
    "push_test_body": "이것은 테스트 알림입니다.",

    # === AUDIT ===
    "audit_title": "🔔 알림: {action}",
    "audit_user_signup": "새로운 회원이 가입했습니다. ({email})",
    "audit_club_create": "새로운 클럽이 생성되었습니다. ({club})",
    "audit_match_create": "새로운 경기가 생성되었습니다. ({date} {rink})",
    "audit_match_join": "{name} 님이 {date} {rink} 경기에 참가 신청했습니다. ({status})",
    "audit_match_cancel": "{name} 님이 {date} {rink} 경기 참가를 취소했습니다. (환불 {refund}P)",
    "audit_point_charge_request": "{name} 님이 {amount}P 충전을 요청했습니다. (입금자: {depositor})",
    "audit_push_subscribe": "{name} 님이 알림을 구독했습니다.",
    "audit_chat_create": "새로운 채팅방이 개설되었습니다. ({p1} 님과 {p2} 님)",
    "audit_admin_apply": "{name} 님이 관리자 권한을 신청했습니다.",
}
