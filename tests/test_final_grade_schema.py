import importlib
import warnings

from models.final_grades import FinalGrade as FinalGradeModel
from schemas import final_grades


def test_final_grade_schema_defines_without_deprecation_warning():
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        module = importlib.reload(final_grades)

    assert module.FinalGrade.model_config["from_attributes"] is True


def test_final_grade_reads_orm_rows():
    row = FinalGradeModel(id=5, student_id=1, subject_id=1, academic_period_id=21,
                          term="Final", final_grade="1.75", final_grade_num=89)

    grade = final_grades.FinalGrade.model_validate(row)

    assert (grade.id, grade.term, grade.final_grade) == (5, "Final", "1.75")
    assert grade.section_id is None
