# Operator prompts for vCD Import/Export
################################################################################
### Copyright 2020-2023 VMware, Inc.
### SPDX-License-Identifier: BSD-2-Clause
################################################################################
import getpass


class ConsolePrompter():
    """Interactive questions asked on the console"""
    def __init__(self, assume_yes: bool = False) -> None:
        self.assume_yes = assume_yes

    def confirm(self, question: str) -> bool:
        """ Forces user to respond, 'y' or 'n', returns True or False """
        if self.assume_yes:
            return True
        while "the answer is invalid":
            reply = str(input(question + ' (y/n): ')).lower().strip()
            if reply[:1] == 'y':
                return True
            if reply[:1] == 'n':
                return False

    def choose(self, question: str, options: list) -> int:
        """Numbered list, returns the index of the selected option"""
        print(question)
        for i, option in enumerate(options, start=1):
            print(f'  {i}) {option}')
        while True:
            reply = input(f'Enter a number between 1 and {len(options)}: ').strip()
            if reply.isdigit() and 1 <= int(reply) <= len(options):
                return int(reply) - 1

    def ask(self, question: str, default: str = None) -> str:
        suffix = f' [{default}]' if default else ''
        while True:
            reply = input(f'{question}{suffix}: ').strip()
            if reply:
                return reply
            if default:
                return default

    def password(self, question: str) -> str:
        while True:
            reply = getpass.getpass(f'{question}: ')
            if reply:
                return reply


def splitUser(value: str) -> tuple:
    """'user@org' -> (user, org). Without an org, the System organization is used."""
    if '@' in value:
        user, org = value.rsplit('@', 1)
        return user, org
    return value, 'System'


def promptCredentials(prompter: ConsolePrompter, label: str, url: str, user: str = None) -> tuple:
    """Operator-entered (user, org, password) for one vCD instance"""
    if not user:
        user = prompter.ask(f'{label} user for {url} (user@org)')
    user, org = splitUser(user)
    password = prompter.password(f'Password for {user}@{org} on {url}')
    return user, org, password
