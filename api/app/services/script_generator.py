"""Embed script generator.

Produces the JavaScript that customer sites load from ``/s/{project_id}``.
The script is a self-executing ES5 function that:

1. Guards against running twice for the same project on one page
2. Creates or reuses a persisted visitor id (``localStorage``)
3. Assigns a variation with the same djb2 hash as
   :mod:`app.services.assignment`
4. Applies it (``data-optim-variation`` on ``<html>``, ``data-optim-show``
   filtering, ``?variation=`` via ``history.replaceState``)
5. Reports it through an image beacon to ``/track``
6. Announces it with an ``optimeleon:ready`` DOM event and on
   ``window.__OPTIMELEON__[projectId]``

The project id and API base URL are the only values injected, and both are
validated against allow-lists before being emitted as string literals.
"""

import json
from string import Template

from app.core.security import is_safe_base_url, is_safe_identifier

GLOBAL_NAMESPACE = "__OPTIMELEON__"
VISITOR_STORAGE_KEY = "optim_vid"
READY_EVENT = "optimeleon:ready"


class UnsafeIdentifierError(ValueError):
    """Raised when a value cannot be embedded safely in generated script text."""


_EMBED_TEMPLATE = Template("""(function(){
  var config={projectId:$project_id,api:$api_endpoint};
  var O=window.$namespace=window.$namespace||{};
  if(O[config.projectId])return;
  var state=O[config.projectId]={projectId:config.projectId};

  function warn(step,e){
    try{console.warn("[Optimeleon] "+step+" failed:",e&&e.message?e.message:e);}catch(_){}
  }

  function newVisitorId(){
    return "v_"+Date.now().toString(36)+"_"+Math.random().toString(36).substr(2,9);
  }

  function getVisitorId(){
    var k="$storage_key";
    try{
      var id=window.localStorage.getItem(k);
      if(!id){
        id=newVisitorId();
        window.localStorage.setItem(k,id);
      }
      return id;
    }catch(e){
      return newVisitorId();
    }
  }

  function hash(s){
    var h=5381;
    for(var i=0;i<s.length;i++){
      h=(h*33)^s.charCodeAt(i);
    }
    return h>>>0;
  }

  function getVariation(vid,pid){
    var vars=["A","B","C","D"];
    return vars[hash(vid+":"+pid)%4];
  }

  function showsFor(list,v){
    var parts=list.split(",");
    for(var i=0;i<parts.length;i++){
      if(parts[i].replace(/^\\s+|\\s+$$/g,"")===v)return true;
    }
    return false;
  }

  function applyVariation(v){
    document.documentElement.setAttribute("data-optim-variation",v);

    try{
      var els=document.querySelectorAll("[data-optim-show]");
      for(var i=0;i<els.length;i++){
        if(!showsFor(els[i].getAttribute("data-optim-show")||"",v)){
          els[i].style.display="none";
        }
      }
    }catch(e){warn("show-for",e);}

    try{
      var loc=window.location;
      if(!/[?&]variation=/.test(loc.search)&&window.history&&window.history.replaceState){
        var search=(loc.search?loc.search+"&":"?")+"variation="+v;
        window.history.replaceState(window.history.state,"",loc.pathname+search+loc.hash);
      }
    }catch(e){warn("url",e);}
  }

  function track(vid,v){
    try{
      var img=new Image();
      img.src=config.api+"/track?v="+encodeURIComponent(vid)+
        "&p="+encodeURIComponent(config.projectId)+
        "&var="+encodeURIComponent(v)+"&t="+Date.now();
    }catch(e){warn("track",e);}
  }

  function notify(detail){
    try{
      var ev;
      if(typeof CustomEvent==="function"){
        ev=new CustomEvent("$ready_event",{detail:detail});
      }else{
        ev=document.createEvent("CustomEvent");
        ev.initCustomEvent("$ready_event",false,false,detail);
      }
      document.dispatchEvent(ev);
    }catch(e){warn("notify",e);}
  }

  function init(){
    try{
      var vid=getVisitorId();
      var variation=getVariation(vid,config.projectId);

      state.visitorId=vid;
      state.variation=variation;
      O.visitorId=vid;
      O.variation=variation;
      O.projectId=config.projectId;

      try{applyVariation(variation);}catch(e){warn("apply",e);}
      track(vid,variation);
      notify({visitorId:vid,variation:variation,projectId:config.projectId});
    }catch(e){
      warn("init",e);
    }
  }

  try{
    if(document.readyState==="loading"){
      document.addEventListener("DOMContentLoaded",init);
    }else{
      init();
    }
  }catch(e){warn("schedule",e);}
})();
""")


def _js_string(value: str) -> str:
    """Quote a value as a JavaScript string literal that is also safe inside
    an inline ``<script>`` element."""
    return (
        json.dumps(value)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def _normalize_endpoint(api_endpoint: str) -> str:
    endpoint = (api_endpoint or "").rstrip("/")
    if not is_safe_base_url(endpoint):
        raise UnsafeIdentifierError(f"Refusing to embed API endpoint {api_endpoint!r}")
    return endpoint


def generate_embed_script(project_id: str, api_endpoint: str) -> str:
    """Generate the embed script for a project.

    Raises :class:`UnsafeIdentifierError` if the project id is outside the
    safe identifier class or the endpoint is not a plain http(s) URL.
    """
    if not is_safe_identifier(project_id):
        raise UnsafeIdentifierError(f"Refusing to embed project id {project_id!r}")
    endpoint = _normalize_endpoint(api_endpoint)

    return _EMBED_TEMPLATE.substitute(
        project_id=_js_string(project_id),
        api_endpoint=_js_string(endpoint),
        namespace=GLOBAL_NAMESPACE,
        storage_key=VISITOR_STORAGE_KEY,
        ready_event=READY_EVENT,
    )


def generate_embed_code(project_id: str, api_endpoint: str) -> str:
    """HTML snippet customers paste into their pages."""
    if not is_safe_identifier(project_id):
        raise UnsafeIdentifierError(f"Refusing to embed project id {project_id!r}")
    endpoint = _normalize_endpoint(api_endpoint)
    return f'<script src="{endpoint}/s/{project_id}"></script>'


def placeholder_script(reason: str) -> str:
    """Inert script body returned instead of the real embed script."""
    # Keep the comment from being closed early by the reason text
    return f"/* Optimeleon: {reason.replace('*/', '* /')} */\n"
