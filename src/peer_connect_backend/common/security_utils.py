'''
Password hashing helpers, kept apart from services.security so that
the user service and test factories can hash without circular imports.
'''
from passlib.context import CryptContext

class HashedPassword:
    pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    @classmethod
    def verify(cls, plain_password: str, hashed_password: str) -> bool:
        return cls.pwd_context.verify(plain_password, hashed_password)

    @classmethod
    def get_hash(cls, password: str) -> str:
        return cls.pwd_context.hash(password)

    @classmethod
    def needs_update(cls, hashed_password: str) -> bool:
        """True when the stored hash uses deprecated settings and should be re-hashed on login."""
        return cls.pwd_context.needs_update(hashed_password)
