from .banks import ContentBanks, FaceEntry, ImageEntry, NameEntry, WordPools, default_banks
from .sequences import BINARY, DIGITS, chunk, generate_binary, generate_digits, generate_sequence
from .words import generate_word_list, generate_word_mix
from .images import ImageSequence, generate_image_sequence
from .faces import FaceCard, generate_face_cards
from .arithmetic import Problem, ProblemStream, generate_problem, make_problem

__all__ = [
    "ContentBanks",
    "FaceEntry",
    "ImageEntry",
    "NameEntry",
    "WordPools",
    "default_banks",
    "BINARY",
    "DIGITS",
    "chunk",
    "generate_binary",
    "generate_digits",
    "generate_sequence",
    "generate_word_list",
    "generate_word_mix",
    "ImageSequence",
    "generate_image_sequence",
    "FaceCard",
    "generate_face_cards",
    "Problem",
    "ProblemStream",
    "generate_problem",
    "make_problem",
]
