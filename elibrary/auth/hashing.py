from passlib.context import CryptContext  # type: ignore

from elibrary import config

pwd_cxt = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)


class Hash():
    @staticmethod
    def bcrypt(password: str) -> str:
        return pwd_cxt.hash(password)

    @staticmethod
    def verify(plain_pass: str, hashed_pass: str) -> bool:
        return pwd_cxt.verify(plain_pass, hashed_pass)
