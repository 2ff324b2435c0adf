from .password_encoder import BcryptPasswordEncoder

__all__ = ["BcryptPasswordEncoder"]
