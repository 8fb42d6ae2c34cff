class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    UPLOAD_DOCUMENT = V1 + "/upload-document"
    CHAT = V1 + "/chat"
    HEALTH = "/healthz"


# Separates retrieved grounding context from the user query in the generation prompt
CONTEXT_DELIMITER = "\n"

PDF_MEDIA_TYPE = "application/pdf"
IMAGE_MEDIA_PREFIX = "image/"

# Replaces every denylisted span in user queries
REDACTION_MARKER = "[CENSORED]"
