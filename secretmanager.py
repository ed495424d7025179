from functools import lru_cache

from google.cloud import secretmanager


def get_secret(secret_id):
    client = secretmanager.SecretManagerServiceClient()
    response = client.access_secret_version(request={"name": secret_id})
    return response.payload.data.decode("UTF-8")


@lru_cache(maxsize=None)
def get_cached_secret(secret_id):
    return get_secret(secret_id)
