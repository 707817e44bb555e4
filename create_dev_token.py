# create_dev_token.py
"""
Выпускает bearer-токен для локальной разработки.

    python create_dev_token.py <user_id> <rider|driver>

Пользователь с этим id должен существовать в таблице users.
"""

import sys

from saferide.common.constants import ParticipantRole
from saferide.core.auth.service import AuthGate


def main(argv: list[str]) -> int:
    if len(argv) != 3:
        print(__doc__)
        return 1

    try:
        user_id = int(argv[1])
        role = ParticipantRole(argv[2].lower())
    except ValueError:
        print(__doc__)
        return 1

    try:
        token = AuthGate.from_settings().issue_token(user_id, role)
    except ValueError as e:
        print(f"Ошибка: {e}")
        return 1

    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
