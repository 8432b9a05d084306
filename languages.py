"""
Language menu, wizard strings and reply parsing for the onboarding wizard.

The digit order of MENU is fixed; the welcome menu is always rendered in
English so that "3" means French no matter who is asking.
"""

import re
from typing import Dict, Optional

# ── language menu constants (neutral) ──
MENU: Dict[str, Dict[str, str]] = {
    "1": {"name": "English",    "code": "en"},
    "2": {"name": "Spanish",    "code": "es"},
    "3": {"name": "French",     "code": "fr"},
    "4": {"name": "Portuguese", "code": "pt"},
    "5": {"name": "German",     "code": "de"},
}

RESET_COMMANDS = ("reset", "change language")

# female first: "female" contains "male"
_FEMALE_WORDS = re.compile(r"female|femenin[oa]|f[ée]minine?|feminin[oa]|weiblich", re.IGNORECASE)
_MALE_WORDS = re.compile(r"male|masculin[oa]?|masculine|m[äa]nnlich", re.IGNORECASE)

WELCOME_TITLE = "👋 Welcome to TuCanChat!  Please choose your language:"

# ── wizard strings in EN / ES / FR / PT / DE ("reset" kept EN) ──
I18N: Dict[str, Dict[str, str]] = {
    "en": {
        "how": (
            "📌 How TuCanChat works\n"
            "• Send any voice note, text or PDF.\n"
            "• I instantly deliver:\n"
            "\t1. Heard: your exact words\n"
            "\t2. Translation\n"
            "\t3. Audio reply in your language\n"
            "• Type “reset” anytime to switch languages.\n\n"
            "When it shines: quick travel chats, decoding a doctor’s or lawyer’s message, "
            "serving global customers, or brushing up on a new language, all without leaving WhatsApp."
        ),
        "receive": "🌎 What language do you RECEIVE messages in?",
        "voice": "🔊 Voice gender?\n1️⃣ Male\n2️⃣ Female",
        "genderErr": "❌ Reply 1 or 2.\n1️⃣ Male\n2️⃣ Female",
        "setupDone": "✅ Setup complete!  Send a voice-note or text.",
        "paywall": (
            "⚠️ You’ve used your {quota} free translations. For unlimited access, "
            "please choose one of the subscription options below:\n\n"
            "1️⃣ Monthly  $4.99\n2️⃣ Annual   $49.99\n3️⃣ Lifetime $199"
        ),
        "targetDiff": "⚠️ Target must differ.",
        "reply1to5": "❌ Reply 1-5.",
        "processError": "⚠️ Sorry, I couldn't process that message. Please try again.",
    },
    "es": {
        "how": (
            "📌 Cómo funciona TuCanChat\n"
            "• Envía cualquier nota de voz, texto o PDF.\n"
            "• Te entrego al instante:\n"
            "\t1. Heard: tus palabras exactas\n"
            "\t2. Traducción\n"
            "\t3. Audio en tu idioma\n"
            "• Escribe “reset” en cualquier momento para cambiar idiomas.\n\n"
            "Ideal para viajes, citas médicas o legales, atender clientes globales "
            "o practicar un idioma, todo dentro de WhatsApp."
        ),
        "receive": "🌎 ¿En qué idioma RECIBES los mensajes?",
        "voice": "🔊 Voz:\n1️⃣ Masculina\n2️⃣ Femenina",
        "genderErr": "❌ Responde 1 o 2.\n1️⃣ Masculina\n2️⃣ Femenina",
        "setupDone": "✅ ¡Listo! Envía una nota de voz o texto.",
        "paywall": (
            "⚠️ Has usado tus {quota} traducciones gratis. Para acceso ilimitado elige:\n\n"
            "1️⃣ Mensual  $4.99\n2️⃣ Anual    $49.99\n3️⃣ De por vida $199"
        ),
        "targetDiff": "⚠️ El destino debe ser diferente.",
        "reply1to5": "❌ Responde 1-5.",
        "processError": "⚠️ Lo siento, no pude procesar ese mensaje. Inténtalo de nuevo.",
    },
    "fr": {
        "how": (
            "📌 Comment fonctionne TuCanChat\n"
            "• Envoyez un message vocal, un texte ou un PDF.\n"
            "• Je réponds aussitôt :\n"
            "\t1. Heard : vos mots exacts\n"
            "\t2. Traduction\n"
            "\t3. Audio dans votre langue\n"
            "• Tapez “reset” à tout moment pour changer de langue.\n\n"
            "Parfait pour voyager, comprendre un médecin ou un avocat, servir des clients "
            "internationaux ou pratiquer une langue, sans quitter WhatsApp."
        ),
        "receive": "🌎 Dans quelle langue RECEVEZ-vous les messages ?",
        "voice": "🔊 Genre de voix ?\n1️⃣ Masculine\n2️⃣ Féminine",
        "genderErr": "❌ Répondez 1 ou 2.\n1️⃣ Masculine\n2️⃣ Féminine",
        "setupDone": "✅ Configuration terminée ! Envoyez un vocal ou un texte.",
        "paywall": (
            "⚠️ Vous avez utilisé vos {quota} traductions gratuites. Pour un accès illimité :\n\n"
            "1️⃣ Mensuel  4,99 $\n2️⃣ Annuel   49,99 $\n3️⃣ À vie    199 $"
        ),
        "targetDiff": "⚠️ La cible doit être différente.",
        "reply1to5": "❌ Répondez 1-5.",
        "processError": "⚠️ Désolé, je n'ai pas pu traiter ce message. Réessayez.",
    },
    "pt": {
        "how": (
            "📌 Como o TuCanChat funciona\n"
            "• Envie qualquer áudio, texto ou PDF.\n"
            "• Eu entrego na hora:\n"
            "\t1. Heard: suas palavras exatas\n"
            "\t2. Tradução\n"
            "\t3. Áudio no seu idioma\n"
            "• Digite “reset” a qualquer momento para trocar de idioma.\n\n"
            "Ótimo para viagens, entender médicos ou advogados, atender clientes globais "
            "ou praticar um idioma, sem sair do WhatsApp."
        ),
        "receive": "🌎 Em qual idioma você RECEBE mensagens?",
        "voice": "🔊 Gênero da voz:\n1️⃣ Masculina\n2️⃣ Feminina",
        "genderErr": "❌ Responda 1 ou 2.\n1️⃣ Masculina\n2️⃣ Feminina",
        "setupDone": "✅ Configuração concluída! Envie um áudio ou texto.",
        "paywall": (
            "⚠️ Você usou suas {quota} traduções grátis. Para acesso ilimitado escolha:\n\n"
            "1️⃣ Mensal   $4.99\n2️⃣ Anual    $49.99\n3️⃣ Vitalício $199"
        ),
        "targetDiff": "⚠️ O destino deve ser diferente.",
        "reply1to5": "❌ Responda 1-5.",
        "processError": "⚠️ Desculpe, não consegui processar essa mensagem. Tente novamente.",
    },
    "de": {
        "how": (
            "📌 So funktioniert TuCanChat\n"
            "• Sende eine Sprachnachricht, einen Text oder ein PDF.\n"
            "• Ich liefere sofort:\n"
            "\t1. Heard: deine genauen Worte\n"
            "\t2. Übersetzung\n"
            "\t3. Audio-Antwort in deiner Sprache\n"
            "• Tippe „reset“, um jederzeit die Sprache zu wechseln.\n\n"
            "Ideal für Reisen, Arzt-/Anwaltsnachrichten, globalen Kundenservice oder "
            "Sprachpraxis, ohne WhatsApp zu verlassen."
        ),
        "receive": "🌎 In welcher Sprache ERHÄLTST du Nachrichten?",
        "voice": "🔊 Stimmtyp?\n1️⃣ Männlich\n2️⃣ Weiblich",
        "genderErr": "❌ Antworte 1 oder 2.\n1️⃣ Männlich\n2️⃣ Weiblich",
        "setupDone": "✅ Setup abgeschlossen! Sende eine Sprachnachricht oder Text.",
        "paywall": (
            "⚠️ Du hast deine {quota} Gratis-Übersetzungen verbraucht. Für unbegrenzten Zugang:\n\n"
            "1️⃣ Monatlich  $4.99\n2️⃣ Jährlich   $49.99\n3️⃣ Lebenslang $199"
        ),
        "targetDiff": "⚠️ Die Zielsprache muss unterschiedlich sein.",
        "reply1to5": "❌ Antworte 1-5.",
        "processError": "⚠️ Entschuldigung, diese Nachricht konnte ich nicht verarbeiten. Bitte versuche es erneut.",
    },
}


def tr(lang: Optional[str], key: str, **kwargs) -> str:
    """Localized wizard string, English when the language or key is unknown."""
    text = I18N.get(lang or "", {}).get(key) or I18N["en"][key]
    return text.format(**kwargs) if kwargs else text


def menu_lines() -> str:
    return "\n".join(f"{d}️⃣ {entry['name']} ({entry['code']})" for d, entry in MENU.items())


def menu_message(title: str) -> str:
    return f"{title}\n\n{menu_lines()}"


def welcome_message() -> str:
    return menu_message(WELCOME_TITLE)


def pick_language(text: str) -> Optional[Dict[str, str]]:
    """
    Resolve a wizard reply to a MENU entry.

    A leading menu digit wins; otherwise the whole reply must equal a
    language code or name, case-insensitively.
    """
    stripped = (text or "").strip()
    if not stripped:
        return None
    if stripped[0] in MENU:
        return MENU[stripped[0]]
    lowered = stripped.lower()
    for entry in MENU.values():
        if lowered in (entry["code"], entry["name"].lower()):
            return entry
    return None


def parse_gender(text: str) -> Optional[str]:
    """Map a voice-gender reply to MALE / FEMALE, or None when unrecognised."""
    stripped = (text or "").strip()
    if stripped == "2" or _FEMALE_WORDS.search(stripped):
        return "FEMALE"
    if stripped == "1" or _MALE_WORDS.search(stripped):
        return "MALE"
    return None


def is_reset_command(text: str) -> bool:
    return (text or "").strip().lower() in RESET_COMMANDS
