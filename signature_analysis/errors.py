'''
Exceptions raised by the signature analysis pipeline.
Every one of them is fatal to a run.
'''


class SignatureAnalysisError(Exception):
    pass


class PhenotypeAlignmentError(SignatureAnalysisError, ValueError):
    '''
    Phenotype labels do not line up with the samples of an expression or activity matrix.
    '''


class ExpressionRangeError(SignatureAnalysisError, ValueError):
    '''
    Expression values that should lie strictly between 0 and 1 do not.
    '''


class ExternalToolError(SignatureAnalysisError, RuntimeError):
    '''
    An external tool could not be started or exited with a nonzero status.
    '''


class ExternalToolTimeoutError(ExternalToolError):
    pass


class AmbiguousResultsError(ExternalToolError):
    '''
    Zero or multiple result directories or report files were found where exactly one was expected.
    '''
