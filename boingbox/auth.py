import os
from jose import jwt, JWTError
from datetime import timedelta
import secrets
from .models import utcnow

SECRET = os.getenv('JWT_SECRET', 'devsecret')
ALGORITHM = os.getenv('JWT_ALGORITHM', 'HS256')
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES', str(60 * 24 * 7)))

def generate_id() -> str:
    # 128-bit identifier as 32 hex chars (call ids, media file ids)
    return secrets.token_hex(16)

def generate_upload_token() -> str:
    return secrets.token_hex(32)

def tokens_match(expected: str, given: str) -> bool:
    if not expected or not given:
        return False
    return secrets.compare_digest(expected, given)

def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    if expires_delta:
        expire = utcnow() + expires_delta
    else:
        expire = utcnow() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({'exp': expire})
    encoded = jwt.encode(to_encode, SECRET, algorithm=ALGORITHM)
    return encoded

def decode_token(token: str):
    try:
        payload = jwt.decode(token, SECRET, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None
