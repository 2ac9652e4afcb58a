from support_bot.schemas.domain import FaqCategory, FaqEntry

FAQ_ENTRIES: tuple[FaqEntry, ...] = (
    FaqEntry(
        id=1,
        question="What are your business hours?",
        answer="We are open Monday to Friday, 9 AM to 6 PM EST. We are closed on weekends and holidays.",
        category=FaqCategory.GENERAL,
    ),
    FaqEntry(
        id=2,
        question="How do I reset my password?",
        answer=(
            'To reset your password: 1) Click "Forgot Password" on the login page, 2) Enter your email, '
            "3) Check your email for a reset link, 4) Click the link and create a new password."
        ),
        category=FaqCategory.ACCOUNT,
    ),
    FaqEntry(
        id=3,
        question="What payment methods do you accept?",
        answer=(
            "We accept all major credit cards (Visa, Mastercard, American Express), PayPal, "
            "and bank transfers for enterprise customers."
        ),
        category=FaqCategory.BILLING,
    ),
    FaqEntry(
        id=4,
        question="How long does shipping take?",
        answer=(
            "Standard shipping takes 5-7 business days. Express shipping takes 2-3 business days. "
            "International orders may take 10-15 business days."
        ),
        category=FaqCategory.SHIPPING,
    ),
    FaqEntry(
        id=5,
        question="What is your return policy?",
        answer=(
            "We offer a 30-day money-back guarantee on all products. "
            "Items must be in original condition with all packaging."
        ),
        category=FaqCategory.RETURNS,
    ),
    FaqEntry(
        id=6,
        question="How do I contact support?",
        answer=(
            "You can reach our support team via email at support@company.com, phone at 1-800-SUPPORT, "
            "or through this chat interface."
        ),
        category=FaqCategory.SUPPORT,
    ),
    FaqEntry(
        id=7,
        question="Do you offer discounts for bulk orders?",
        answer=(
            "Yes! We offer volume discounts starting at 10+ units. "
            "Contact our sales team at sales@company.com for a custom quote."
        ),
        category=FaqCategory.BILLING,
    ),
    FaqEntry(
        id=8,
        question="Is my data secure?",
        answer=(
            "Yes, we use industry-standard encryption (SSL/TLS) and comply with GDPR and CCPA regulations. "
            "Your data is never shared with third parties."
        ),
        category=FaqCategory.SECURITY,
    ),
)


def list_faqs() -> tuple[FaqEntry, ...]:
    return FAQ_ENTRIES


def render_faq_context(entries: tuple[FaqEntry, ...] = FAQ_ENTRIES) -> str:
    return "\n\n".join(f"Q: {entry.question}\nA: {entry.answer}" for entry in entries)
