PLAN_IDS = ("basic", "pro", "enterprise")
PREMIUM_PLANS = ("pro", "enterprise")

PLANS = {
    "basic": {
        "name": "Basic",
        "prices": {"monthly": 0, "yearly": 0},
        "description": "Perfect for getting started",
        "features": [
            "Access to all Notes",
            "Limited Quiz Access (MCQs only)",
            "Basic Community Support",
            "View Class Resources",
            "Download PDF Notes",
            "View Sample Lectures",
        ],
        "popular": False,
    },
    "pro": {
        "name": "Pro",
        "prices": {"monthly": 19, "yearly": 190},
        "description": "Most popular choice for serious learners",
        "features": [
            "Everything in Basic Plan",
            "Full access to all Lectures",
            "Unlimited Concept Master AI",
            "All quiz types unlocked",
            "Detailed Performance Analytics",
            "Priority 24/7 Support",
            "Ad-free experience",
            "Completion Certificates",
            "Early access to new features",
        ],
        "popular": True,
    },
    "enterprise": {
        "name": "Enterprise",
        "prices": {"monthly": 49, "yearly": 490},
        "description": "For institutions & organizations",
        "features": [
            "Everything in Pro",
            "Custom Curriculum Setup",
            "Advanced Teacher Dashboard",
            "Bulk Student Management",
            "API Access & Integrations",
            "Dedicated Account Manager",
            "Advanced Analytics Suite",
            "Custom Branding & White-label",
        ],
        "popular": False,
    },
}


def normalize_plan(plan):
    plan = (plan or "").strip().lower()
    return plan if plan in PLANS else None


def is_premium_plan(plan) -> bool:
    return normalize_plan(plan) in PREMIUM_PLANS


def list_plans(billing_cycle="monthly"):
    if billing_cycle not in ("monthly", "yearly"):
        billing_cycle = "monthly"
    period = "/month" if billing_cycle == "monthly" else "/year"
    out = []
    for plan_id in PLAN_IDS:
        plan = PLANS[plan_id]
        price = plan["prices"][billing_cycle]
        out.append({
            "id": plan_id,
            "name": plan["name"],
            "price": price,
            "price_label": f"${price}" if price else "Free",
            "period": period if price else "",
            "billing_cycle": billing_cycle,
            "description": plan["description"],
            "features": plan["features"],
            "popular": plan["popular"],
            "premium": plan_id in PREMIUM_PLANS,
        })
    return out
