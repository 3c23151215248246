import json
import os
from typing import Dict, List

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .export import describe, lab_timetables
from .rules import RuleDiagnostic, Rules, resolve_rules
from .solution import Solution
from .solver import solve_labs
from .sources import SchoolDocument, build_school

app = FastAPI()

# CORS setup (simplified for dev)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # allows all origins in dev
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class SolveRequest(BaseModel):
    school: SchoolDocument
    rules: Rules
    respect_forbidden_times: bool = False


class SolveResponse(BaseModel):
    solution: Solution
    diagnostics: List[RuleDiagnostic]
    lab_timetables: Dict[str, Dict[str, List[str]]]
    messages: List[str]


@app.post("/solve", response_model=SolveResponse)
async def solve_lab_sessions(request: SolveRequest) -> SolveResponse:
    try:
        school = build_school(request.school)
        resolved, diagnostics = resolve_rules(request.rules, school)
        solution = solve_labs(school, resolved,
                              respect_forbidden_times=request.respect_forbidden_times)
        return SolveResponse(
            solution=solution,
            diagnostics=diagnostics,
            lab_timetables=lab_timetables(school, solution),
            messages=describe(school, solution),
        )
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=f"Solver Error: {ve}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Internal Server Error: {e}")


@app.get("/")
async def read_root():
    return {"message": "Laboratory Scheduler API"}


@app.get("/example")
async def example_problem():
    path = os.path.join(os.path.dirname(__file__), "example.json")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
