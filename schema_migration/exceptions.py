#
# Copyright OpenSearch Contributors
# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
#

"""
Exceptions raised across the schema migration layers.

Lower layers (the cluster client, the schema store) raise the narrow types below. The migration entry points decide
which of them are fatal and which of them only mean "the in-place path did not work, rebuild the index instead".
Anything carrying an originating exception exposes it through ``original_exception`` in addition to the normal
``__cause__`` chain.
"""


# Ultimate base class of every error this package raises on purpose
class SchemaMigrationError(Exception):
    def __init__(self, message: str, original_exception: BaseException = None, *args, **kwargs):
        super().__init__(message, *args, **kwargs)
        self.original_exception = original_exception


# HTTP or connection level failure talking to the cluster
class RequestError(SchemaMigrationError):
    pass


# The environment is not in a state where a migration can begin (alias missing or ambiguous, schema files missing,
# a concrete index addressed instead of an alias). These are never retried.
class PreconditionError(SchemaMigrationError):
    pass


# Raised by the in-place path when the proposed schema cannot be applied to the live index
class BreakingChangeDetected(SchemaMigrationError):
    pass


class ReindexError(SchemaMigrationError):
    pass


class TaskTimeoutError(ReindexError):
    pass


class AliasUpdateError(SchemaMigrationError):
    pass


# A step of the rebuild failed outside the window covered by automatic rollback. The plan is carried so that the
# operator can recover by hand.
class MigrationStepError(SchemaMigrationError):
    def __init__(self, step_name: str, plan, original_exception: BaseException = None):
        super().__init__(f"Migration step '{step_name}' failed: {original_exception}",
                         original_exception=original_exception)
        self.step_name = step_name
        self.plan = plan


class RollbackError(SchemaMigrationError):
    pass


# The live index still differs from the local schema once a migration finished
class VerificationError(SchemaMigrationError):
    def __init__(self, message: str, diff_result=None):
        super().__init__(message)
        self.diff_result = diff_result


def is_exception_in_type_list(exception: BaseException, type_list: list) -> bool:
    for exc_type in type_list:
        if isinstance(exception, exc_type):
            return True
    return False
