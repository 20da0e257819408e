from typing import Optional

DEFAULT_LANGUAGE = "en"

# locale spellings the clients send, mapped onto the message tables below
_LANGUAGE_NAMES = {
    "turkish": "tr",
    "english": "en",
    "spanish": "es",
    "portuguese": "pt",
    "french": "fr",
    "russian": "ru",
}

IMAGE_ERROR_MESSAGES = {
    "no_edited_image": {
        "tr": "Model düzenlenmiş bir görsel döndürmedi.",
        "en": "The model did not return an edited image.",
        "es": "El modelo no devolvió una imagen editada.",
        "fr": "Le modèle n’a pas renvoyé d’image modifiée.",
        "pt": "O modelo não retornou uma imagem editada.",
        "ru": "Модель не вернула отредактированное изображение.",
    },
    "no_image_returned": {
        "tr": "Model herhangi bir görsel döndürmedi.",
        "en": "The model did not return any images.",
        "es": "El modelo no devolvió ninguna imagen.",
        "fr": "Le modèle n’a renvoyé aucune image.",
        "pt": "O modelo não retornou nenhuma imagem.",
        "ru": "Модель не вернула ни одного изображения.",
    },
    "empty_image_payload": {
        "tr": "Oluşturulan görsel verisi boş.",
        "en": "The generated image data is empty.",
        "es": "Los datos de la imagen generada están vacíos.",
        "fr": "Les données de l’image générée sont vides.",
        "pt": "Os dados da imagem gerada estão vazios.",
        "ru": "Данные созданного изображения пусты.",
    },
    "provider_error": {
        "tr": "Görsel servisi isteği tamamlayamadı.",
        "en": "The image service could not complete the request.",
        "es": "El servicio de imágenes no pudo completar la solicitud.",
        "fr": "Le service d’images n’a pas pu terminer la requête.",
        "pt": "O serviço de imagens não conseguiu concluir o pedido.",
        "ru": "Сервис изображений не смог выполнить запрос.",
    },
    "unknown_error": {
        "tr": "Beklenmeyen bir hata oluştu.",
        "en": "An unknown error occurred.",
        "es": "Ocurrió un error desconocido.",
        "fr": "Une erreur inconnue s'est produite.",
        "pt": "Ocorreu um erro desconhecido.",
        "ru": "Произошла неизвестная ошибка.",
    },
    "invalid_prompt": {
        "tr": "Lütfen bir açıklama yazın.",
        "en": "Please enter a prompt.",
        "es": "Por favor escribe una descripción.",
        "fr": "Veuillez saisir une description.",
        "pt": "Por favor, escreva uma descrição.",
        "ru": "Пожалуйста, введите описание.",
    },
    "invalid_image": {
        "tr": "Lütfen geçerli bir görsel dosyası yükleyin (ör. PNG, JPG, WEBP).",
        "en": "Please upload a valid image file (e.g., PNG, JPG, WEBP).",
        "es": "Sube un archivo de imagen válido (p. ej., PNG, JPG, WEBP).",
        "fr": "Veuillez téléverser un fichier image valide (ex. PNG, JPG, WEBP).",
        "pt": "Envie um arquivo de imagem válido (ex.: PNG, JPG, WEBP).",
        "ru": "Загрузите корректный файл изображения (например, PNG, JPG, WEBP).",
    },
    "image_too_large": {
        "tr": "Görsel boyutu sınırı aşıldı.",
        "en": "Image size limit exceeded.",
        "es": "Se excedió el límite de tamaño de la imagen.",
        "fr": "La taille de l’image dépasse la limite.",
        "pt": "O limite de tamanho da imagem foi excedido.",
        "ru": "Превышен предел размера изображения.",
    },
}

FAILURE_PREFIX = {
    "tr": "İçerik oluşturulamadı. Lütfen tekrar deneyin. Hata: {error}",
    "en": "Failed to generate content. Please try again. Error: {error}",
    "es": "No se pudo generar el contenido. Inténtalo de nuevo. Error: {error}",
    "fr": "Impossible de générer le contenu. Veuillez réessayer. Erreur : {error}",
    "pt": "Não foi possível gerar o conteúdo. Tente novamente. Erro: {error}",
    "ru": "Не удалось создать контент. Попробуйте ещё раз. Ошибка: {error}",
}


def normalize_language(language: Optional[str]) -> str:
    """Reduce "pt_BR", "en-GB" or "French" to a key of the message tables."""
    code = (language or "").strip().lower().replace("_", "-")
    code = _LANGUAGE_NAMES.get(code, code.split("-", 1)[0])
    return code if code in FAILURE_PREFIX else DEFAULT_LANGUAGE


def get_image_error_message(code: str, language: str | None) -> str:
    lang = normalize_language(language)
    table = IMAGE_ERROR_MESSAGES.get(code) or IMAGE_ERROR_MESSAGES["unknown_error"]
    return table.get(lang, table["en"])


def format_failure_message(error: object, language: str | None) -> str:
    template = FAILURE_PREFIX.get(normalize_language(language), FAILURE_PREFIX["en"])
    return template.format(error=error)


__all__ = [
    "IMAGE_ERROR_MESSAGES",
    "normalize_language",
    "get_image_error_message",
    "format_failure_message",
]
