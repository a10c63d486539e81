from typing import Dict
from mm_inactive_users.users import InactiveUser
from mm_inactive_users.utils import get_terminal_height

def format_user(user: InactiveUser) -> str:
    return (
        f"Username: {user.username}, Email: {user.email}, Full name: {user.full_name}, "
        f"Last Login: {user.last_activity_on}, Days Since Last Login: {user.days_since_last_activity}"
    )

def print_identified_users(users: Dict[str, InactiveUser]):
    """
    Lists the candidates a screen at a time.

    After each screenful the operator can press enter to continue or Q to stop
    the listing. The candidate set itself is never touched.
    """
    # One line is kept free for the prompt
    page_length = max(get_terminal_height() - 1, 2)
    count = 2 # header lines

    print("\nIdentified Users\n================\n")
    for user in users.values():
        print(format_user(user))
        count += 1

        if count % page_length == 0:
            try:
                response = input("Enter 'Q' to quit, or 'enter' key to continue...")
            except EOFError:
                response = ""
            if response.strip().upper() == "Q":
                break

    print(f"\nTotal users identified: {len(users)}\n")
