from config import settings

MESSAGES = {
    "es": {
        "no_meals": "No hay comidas seleccionadas",
        "method_required": "Seleccione un método de pago",
        "meal_not_object": "Comida en posición {position} no es un objeto válido",
        "meal_invalid_id": 'Comida "{label}" no tiene un ID válido',
        "meal_position_label": "en posición {position}",
        "meal_default_name": "Comida {number}",
        "order_create_failed": "Error al crear la orden: {detail}",
        "order_not_created": "No se pudo crear la orden",
        "unsupported_method": "Método de pago no soportado",
        "card_payment_failed": "Error procesando el pago",
        "link_payment_failed": "Error creando link de pago",
        "no_response": "No se recibió respuesta del servidor",
        "no_short_url": "No se pudo generar la URL de pago",
        "card_description": "Pago con tarjeta",
        "missing_payment_fields": "Faltan datos del pago: {fields}",
        "email_registered": "Este correo ya está registrado",
        "email_not_confirmed": "Su email no ha sido confirmado",
        "invalid_credentials": "Credenciales incorrectas",
        "invalid_card_number": "Número de tarjeta inválido",
        "invalid_expiry": "Fecha de expiración inválida",
        "card_expired": "La tarjeta ha expirado",
        "invalid_cvv": "CVV inválido",
        "invalid_amount": "El importe debe ser mayor que 0",
    },
    "en": {
        "no_meals": "No meals selected",
        "method_required": "Select a payment method",
        "meal_not_object": "Meal at position {position} is not a valid object",
        "meal_invalid_id": 'Meal "{label}" has no valid ID',
        "meal_position_label": "at position {position}",
        "meal_default_name": "Meal {number}",
        "order_create_failed": "Failed to create the order: {detail}",
        "order_not_created": "The order could not be created",
        "unsupported_method": "Unsupported payment method",
        "card_payment_failed": "Error processing the payment",
        "link_payment_failed": "Error creating the payment link",
        "no_response": "No response received from the server",
        "no_short_url": "Could not generate the payment URL",
        "card_description": "Card payment",
        "missing_payment_fields": "Missing payment details: {fields}",
        "email_registered": "This email is already registered",
        "email_not_confirmed": "Your email has not been confirmed",
        "invalid_credentials": "Invalid credentials",
        "invalid_card_number": "Invalid card number",
        "invalid_expiry": "Invalid expiry date",
        "card_expired": "The card has expired",
        "invalid_cvv": "Invalid CVV",
        "invalid_amount": "Amount must be greater than 0",
    },
}

# Provider auth errors shown to users as the localised message instead.
AUTH_ERROR_KEYS = {
    "User already registered": "email_registered",
    "Auth session missing": "email_not_confirmed",
    "Email not confirmed": "email_not_confirmed",
    "Invalid login credentials": "invalid_credentials",
}


def message_text(key: str, lang: str | None = None, **params) -> str:
    msgs = MESSAGES.get(lang or settings.default_language) or MESSAGES["es"]
    template = msgs.get(key) or MESSAGES["es"].get(key, "")
    return template.format(**params) if params else template


def translate_auth_error(raw_message: str, lang: str | None = None) -> str | None:
    for needle, key in AUTH_ERROR_KEYS.items():
        if needle in (raw_message or ""):
            return message_text(key, lang)
    return None
