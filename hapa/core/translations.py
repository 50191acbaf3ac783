"""
Localized labels for submission fields and back-office displays.

Submissions store the raw option keys sent by the public forms
(`television`, `hateSpeech`, ...). Labels are resolved here when a
record is displayed or summarized.
"""
from __future__ import annotations

from typing import Dict, Optional

Labels = Dict[str, Dict[str, str]]

MEDIA_TYPES: Labels = {
    "television": {"fr": "Télévision", "ar": "تلفزيون"},
    "radio": {"fr": "Radio", "ar": "راديو"},
    "website": {"fr": "Site web", "ar": "موقع ويب"},
    "newspaper": {"fr": "Journal", "ar": "صحيفة"},
    "magazine": {"fr": "Magazine", "ar": "مجلة"},
    "youtube": {"fr": "YouTube", "ar": "يوتيوب"},
    "facebook": {"fr": "Facebook (page publique)", "ar": "فيسبوك"},
    "twitter": {"fr": "Twitter", "ar": "تويتر"},
    "instagram": {"fr": "Instagram", "ar": "إنستغرام"},
    "tiktok": {"fr": "TikTok", "ar": "تيك توك"},
    "whatsapp": {"fr": "WhatsApp", "ar": "واتساب"},
    "podcast": {"fr": "Podcast", "ar": "بودكاست"},
    "other": {"fr": "Autre", "ar": "آخر"},
}

RELATIONSHIPS: Labels = {
    "viewer": {"fr": "Téléspectateur / Internaute", "ar": "مشاهد / مستخدم إنترنت"},
    "directlyConcerned": {"fr": "Directement concerné", "ar": "معني مباشرة"},
    "journalist": {"fr": "Journaliste", "ar": "صحفي"},
    "other": {"fr": "Autre", "ar": "آخر"},
}

REASONS: Labels = {
    "hateSpeech": {"fr": "Discours de haine / Incitation à la violence", "ar": "خطاب الكراهية / التحريض على العنف"},
    "misinformation": {"fr": "Désinformation / Informations mensongères", "ar": "معلومات مضللة / كاذبة"},
    "fakeNews": {"fr": "Désinformation / Fake news", "ar": "أخبار زائفة"},
    "privacyViolation": {"fr": "Atteinte à la vie privée / Diffamation", "ar": "انتهاك الخصوصية / التشهير"},
    "shockingContent": {"fr": "Contenu choquant / Violent / Inapproprié", "ar": "محتوى صادم / عنيف / غير لائق"},
    "pluralismViolation": {"fr": "Non-respect du pluralisme politique", "ar": "عدم احترام التعددية السياسية"},
    "falseAdvertising": {"fr": "Publicité mensongère ou interdite", "ar": "إعلان كاذب أو محظور"},
    "other": {"fr": "Autre", "ar": "آخر"},
}

# reasons that escalate a new submission to high priority
URGENT_REASONS = {"hateSpeech", "fakeNews", "misinformation"}

ATTACHMENT_TYPES: Labels = {
    "screenshot": {"fr": "Capture d'écran", "ar": "لقطة شاشة"},
    "videoLink": {"fr": "Lien vers une vidéo / page", "ar": "رابط فيديو"},
    "writtenStatement": {"fr": "Déclaration écrite", "ar": "بيان مكتوب"},
    "audioRecording": {"fr": "Enregistrement audio", "ar": "تسجيل صوتي"},
    "document": {"fr": "Document", "ar": "وثيقة"},
    "image": {"fr": "Image", "ar": "صورة"},
    "video": {"fr": "Vidéo", "ar": "فيديو"},
    "other": {"fr": "Autre", "ar": "آخر"},
}

FORM_TYPES: Labels = {
    "report": {"fr": "Signalement", "ar": "تبليغ"},
    "complaint": {"fr": "Plainte", "ar": "شكوى"},
}

SUBMISSION_STATUSES: Labels = {
    "pending": {"fr": "En attente d'examen", "ar": "في انتظار المراجعة"},
    "reviewing": {"fr": "En cours d'examen", "ar": "قيد المراجعة"},
    "resolved": {"fr": "Résolu", "ar": "محلول"},
    "dismissed": {"fr": "Rejeté", "ar": "مرفوض"},
}

PRIORITIES: Labels = {
    "low": {"fr": "Faible", "ar": "منخفض"},
    "medium": {"fr": "Moyen", "ar": "متوسط"},
    "high": {"fr": "Élevé", "ar": "عالي"},
    "urgent": {"fr": "Urgent", "ar": "عاجل"},
}

CONTACT_STATUSES: Labels = {
    "pending": {"fr": "En attente", "ar": "قيد الانتظار"},
    "in-progress": {"fr": "En cours", "ar": "قيد المعالجة"},
    "resolved": {"fr": "Résolu", "ar": "تم الحل"},
}


def label(table: Labels, key: Optional[str], locale: str = "fr", other: Optional[str] = None) -> str:
    """Label for `key`, falling back to French, then to the key itself."""
    if not key:
        return ""
    if key == "other" and other:
        return other
    entry = table.get(key)
    if entry is None:
        return key
    return entry.get(locale) or entry["fr"]


def media_type_label(key: Optional[str], locale: str = "fr", other: Optional[str] = None) -> str:
    return label(MEDIA_TYPES, key, locale, other)


def reason_label(key: Optional[str], locale: str = "fr") -> str:
    return label(REASONS, key, locale)


def relationship_label(key: Optional[str], locale: str = "fr", other: Optional[str] = None) -> str:
    return label(RELATIONSHIPS, key, locale, other)


def attachment_type_label(key: Optional[str], locale: str = "fr") -> str:
    return label(ATTACHMENT_TYPES, key, locale)
